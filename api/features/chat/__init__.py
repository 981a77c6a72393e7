"""Chat feature package: context window, turn orchestration and the /api/chat endpoint."""
