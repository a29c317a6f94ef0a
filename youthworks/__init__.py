"""
YouthWorks
Youth employment and training platform.

Architecture:
- PostgreSQL: Structured data (users, profiles, companies, jobs, courses, messages)
- MongoDB: CV documents and their parsed output
- LLM: CV parsing only, with a keyword fallback
"""

__version__ = "1.0.0"
