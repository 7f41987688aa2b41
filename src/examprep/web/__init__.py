"""Web API for the exam-preparation platform."""
