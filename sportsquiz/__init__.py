"""Sports trivia quiz backend with real-time multiplayer rooms."""
