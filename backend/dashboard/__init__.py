# Dashboard queries over the completed-interview archive
from .query import filter_sessions, sort_by_score, sort_by_name, find_session, delete_session, SORTERS
