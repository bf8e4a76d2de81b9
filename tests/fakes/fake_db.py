"""Fake in-memory database layer for indexer and agent behavioral testing."""

from typing import Any, Dict, List


class FakeDB:
    """In-memory stand-in for the embeddings table and profile insights."""

    def __init__(self):
        self.reset()

    def reset(self):
        """Reset all stores to initial state."""
        self.embeddings: List[Dict[str, Any]] = []
        self.insights: Dict[str, List[str]] = {}
        self.replace_calls = 0

    # Embedding operations
    def replace_org_course_embeddings(
        self, client: Any, course_id: int | str, org_id: str, rows: List[Dict[str, Any]]
    ) -> int:
        """Delete and insert in one step, as the database function does."""
        self.replace_calls += 1
        self.embeddings = [
            row for row in self.embeddings
            if not (row["course_id"] == course_id and row["source_type"] == "org_course")
        ]
        for row in rows:
            self.embeddings.append({**row, "course_id": course_id, "org_id": org_id})
        return len(rows)

    def delete_org_course_embeddings(self, client: Any, course_id: int | str) -> int:
        """Delete every org_course row for a course."""
        before = len(self.embeddings)
        self.embeddings = [row for row in self.embeddings if row["course_id"] != course_id]
        return before - len(self.embeddings)

    def has_org_course_embeddings(self, client: Any, course_id: int | str) -> bool:
        return any(row["course_id"] == course_id for row in self.embeddings)

    def match_org_course_embeddings(
        self,
        client: Any,
        query_embedding: List[float],
        org_id: str,
        course_ids: List[int] | None = None,
        match_threshold: float = 0.7,
        match_count: int = 5,
    ) -> List[Dict[str, Any]]:
        """Dot-product search restricted to one organization."""
        matches = []
        for index, row in enumerate(self.embeddings):
            if row["org_id"] != org_id:
                continue
            if course_ids is not None and row["course_id"] not in course_ids:
                continue
            similarity = sum(a * b for a, b in zip(row["embedding"], query_embedding))
            if similarity > match_threshold:
                matches.append({"id": f"emb-{index}", **row, "similarity": similarity})
        matches.sort(key=lambda match: match["similarity"], reverse=True)
        return matches[:match_count]

    def rows_for_course(self, course_id: int | str) -> List[Dict[str, Any]]:
        return [row for row in self.embeddings if row["course_id"] == course_id]

    # Profile insight operations
    def get_user_insights(self, client: Any, user_id: str) -> List[str]:
        return list(self.insights.get(user_id, []))

    def save_user_insights(self, client: Any, user_id: str, insights: List[str]) -> None:
        self.insights[user_id] = list(insights)
