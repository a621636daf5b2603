"""StudyForge backend: notes, placement questions, GitHub repos and a retrieval-backed study assistant."""
