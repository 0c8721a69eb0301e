import unittest

from fastapi.testclient import TestClient

from main import app, get_intake, get_machine, get_persistence
from models.schemas import CandidateDetails, CompletedSession
from interview.state import InterviewStateMachine
from interview.timer import ManualScheduler
from resume.intake import ResumeIntake
from storage.kv_store import MemoryStore, StorageWriteError
from storage.persistence import SessionPersistence


class StubIntake:
    def __init__(self, details: CandidateDetails) -> None:
        self.details = details
        self.uploads = []

    async def process(self, data: bytes):
        self.uploads.append(data)
        return self.details


class LockedStore(MemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self.locked = False

    def set(self, key: str, value: str):
        if self.locked:
            raise StorageWriteError("read-only")
        super().set(key, value)


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.store = LockedStore()
        self.persistence = SessionPersistence(self.store, max_question_index=6)
        self.scheduler = ManualScheduler()
        self.machine = self.build_machine()
        self.intake = StubIntake(CandidateDetails(name="Jane Doe", email="jane@example.com",
                                                  phone="123-456-7890"))

        app.dependency_overrides[get_persistence] = lambda: self.persistence
        app.dependency_overrides[get_machine] = lambda: self.machine
        app.dependency_overrides[get_intake] = lambda: self.intake
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def build_machine(self) -> InterviewStateMachine:
        return InterviewStateMachine(
            self.persistence,
            scheduler=self.scheduler,
            answer_delay=0,
            clock=lambda: "2025-03-01T12:00:00.000Z",
        )

    def upload(self, filename="resume.pdf", content=b"%PDF-1.4 stub", content_type="application/pdf"):
        return self.client.post("/resume-upload", files={"file": (filename, content, content_type)})

    def say(self, text: str):
        response = self.client.post("/text-response", json={"text": text})
        self.assertEqual(response.status_code, 200)
        return response.json()


class InterviewEndpointTests(ApiTestCase):
    def test_root_reports_running(self) -> None:
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "running")
        self.assertEqual(response.json()["archived_interviews"], 0)

    def test_questions_listing(self) -> None:
        questions = self.client.get("/questions").json()["questions"]
        self.assertEqual([q["allotted_seconds"] for q in questions], [20, 20, 60, 60, 120, 120])
        self.assertEqual(questions[0]["difficulty"], "Easy")

    def test_start_without_resume_collects_details(self) -> None:
        response = self.client.post("/start-interview")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["phase"], "collecting_details")
        self.assertEqual(body["pending_detail_field"], "name")
        self.assertEqual(len(body["transcript"]), 1)

        body = self.say("Jane Doe")
        self.assertTrue(body["accepted"])
        self.assertEqual(body["session"]["pending_detail_field"], "email")
        self.assertEqual(body["session"]["candidate"]["name"], "Jane Doe")

    def test_start_twice_conflicts(self) -> None:
        self.client.post("/start-interview")
        response = self.client.post("/start-interview")
        self.assertEqual(response.status_code, 409)

    def test_blank_text_is_not_accepted(self) -> None:
        self.client.post("/start-interview")
        body = self.say("   ")
        self.assertFalse(body["accepted"])
        self.assertEqual(len(body["session"]["transcript"]), 1)

    def test_upload_prefills_and_start_asks_first_question(self) -> None:
        response = self.upload()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["candidate"]["email"], "jane@example.com")
        self.assertFalse(response.json()["superseded"])
        self.assertEqual(self.intake.uploads, [b"%PDF-1.4 stub"])

        body = self.client.post("/start-interview").json()
        self.assertEqual(body["phase"], "awaiting_answer")
        self.assertEqual(body["question_number"], 1)
        self.assertEqual(body["seconds_remaining"], 20)
        self.assertEqual(body["transcript"][0]["questionIndex"], 0)

    def test_upload_rejects_non_pdf(self) -> None:
        response = self.upload(filename="notes.txt", content=b"hello", content_type="text/plain")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.intake.uploads, [])

    def test_upload_after_start_conflicts(self) -> None:
        self.client.post("/start-interview")
        self.assertEqual(self.upload().status_code, 409)

    def test_unreadable_pdf_yields_no_details(self) -> None:
        self.intake = ResumeIntake()
        response = self.upload(content=b"this is not really a pdf")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["candidate"], {"name": None, "email": None, "phone": None})

        body = self.client.post("/start-interview").json()
        self.assertEqual(body["pending_detail_field"], "name")

    def test_full_interview_is_archived(self) -> None:
        self.upload()
        self.client.post("/start-interview")
        for i in range(6):
            body = self.say(f"answer {i}")
            self.assertTrue(body["accepted"])

        session = body["session"]
        self.assertTrue(session["ended"])
        self.assertEqual(session["phase"], "ended")
        self.assertFalse(self.say("anything else")["accepted"])

        listing = self.client.get("/interviews").json()
        self.assertEqual(listing["total"], 1)
        self.assertEqual(listing["interviews"][0]["score"], 60)
        self.assertFalse(self.client.get("/in-progress").json()["resumeAvailable"])

    def test_status_reflects_countdown(self) -> None:
        self.upload()
        self.client.post("/start-interview")
        self.scheduler.advance(5)
        body = self.client.get("/interview-status").json()
        self.assertEqual(body["seconds_remaining"], 15)
        self.assertFalse(body["time_expired"])


class RecoveryEndpointTests(ApiTestCase):
    def test_resume_after_restart(self) -> None:
        self.upload()
        self.client.post("/start-interview")
        self.say("first answer")
        self.assertTrue(self.client.get("/in-progress").json()["resumeAvailable"])

        # A fresh machine stands in for a reloaded process
        self.machine = self.build_machine()
        body = self.client.post("/resume-interview").json()
        self.assertTrue(body["resumed"])
        self.assertEqual(body["session"]["question_number"], 2)
        self.assertEqual(body["session"]["candidate"]["name"], "Jane Doe")

    def test_resume_without_saved_interview(self) -> None:
        body = self.client.post("/resume-interview").json()
        self.assertFalse(body["resumed"])
        self.assertEqual(body["session"]["phase"], "not_started")

    def test_start_after_restart_requires_a_choice(self) -> None:
        self.upload()
        self.client.post("/start-interview")
        self.say("first answer")
        saved = self.store.get("inProgressInterview")

        self.machine = self.build_machine()
        response = self.client.post("/start-interview")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(self.store.get("inProgressInterview"), saved)

        self.assertTrue(self.client.post("/resume-interview").json()["resumed"])
        self.assertEqual(self.client.get("/interview-status").json()["question_number"], 2)

    def test_reset_discards_saved_interview(self) -> None:
        self.client.post("/start-interview")
        self.assertTrue(self.client.get("/in-progress").json()["resumeAvailable"])

        body = self.client.post("/reset-interview").json()
        self.assertEqual(body["session"]["phase"], "not_started")
        self.assertFalse(self.client.get("/in-progress").json()["resumeAvailable"])
        self.assertEqual(self.client.post("/start-interview").status_code, 200)


class DashboardEndpointTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        records = [
            ("bob-1", "Bob Stone", "bob@example.com", 30, "2025-01-01T10:00:00.000Z"),
            ("alice-1", "Alice Smith", "alice@example.com", 50, "2025-01-02T10:00:00.000Z"),
            ("carol-1", "Carol King", "carol@corp.io", 60, "2025-01-03T10:00:00.000Z"),
        ]
        for interview_id, name, email, score, completed_at in records:
            self.persistence.append_completed(CompletedSession(
                interview_id=interview_id,
                candidate=CandidateDetails(name=name, email=email, phone="1234567890"),
                completed_at=completed_at,
                score=score,
            ))

    def ids(self, **params):
        response = self.client.get("/interviews", params=params)
        self.assertEqual(response.status_code, 200)
        return [item["id"] for item in response.json()["interviews"]]

    def test_list_sorted_by_score_by_default(self) -> None:
        self.assertEqual(self.ids(), ["carol-1", "alice-1", "bob-1"])

    def test_list_sorted_by_name(self) -> None:
        self.assertEqual(self.ids(sort="name"), ["alice-1", "bob-1", "carol-1"])

    def test_list_in_completion_order(self) -> None:
        self.assertEqual(self.ids(sort="none"), ["bob-1", "alice-1", "carol-1"])

    def test_invalid_sort_is_rejected(self) -> None:
        self.assertEqual(self.client.get("/interviews", params={"sort": "date"}).status_code, 422)

    def test_search(self) -> None:
        self.assertEqual(self.ids(search="ali"), ["alice-1"])
        self.assertEqual(self.ids(search="CORP"), ["carol-1"])
        self.assertEqual(self.ids(search="nobody"), [])

    def test_detail(self) -> None:
        response = self.client.get("/interviews/alice-1")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["candidateDetails"]["name"], "Alice Smith")
        self.assertEqual(body["completedAt"], "2025-01-02T10:00:00.000Z")

        by_time = self.client.get("/interviews/2025-01-01T10:00:00.000Z")
        self.assertEqual(by_time.json()["id"], "bob-1")

    def test_detail_unknown(self) -> None:
        self.assertEqual(self.client.get("/interviews/missing").status_code, 404)

    def test_delete(self) -> None:
        response = self.client.delete("/interviews/bob-1")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["remaining"], 2)
        self.assertEqual(self.ids(), ["carol-1", "alice-1"])
        self.assertEqual(self.client.delete("/interviews/bob-1").status_code, 404)

    def test_delete_when_storage_fails(self) -> None:
        self.store.locked = True
        self.assertEqual(self.client.delete("/interviews/bob-1").status_code, 503)
        self.assertEqual(len(self.ids()), 3)


if __name__ == "__main__":
    unittest.main()
