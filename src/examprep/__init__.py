"""Exam-preparation platform.

Students take timed challenges and self-paced study sessions, climb the
ranking, download materials and receive study recommendations computed from
their tracked performance.
"""

__version__ = "0.1.0"
