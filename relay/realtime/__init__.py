"""Real-time coordination: connections, presence, rooms and message fan-out."""
