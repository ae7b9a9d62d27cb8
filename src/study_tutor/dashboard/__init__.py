"""Score statistics and Rich views over quiz history."""
