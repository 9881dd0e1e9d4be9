"""
ProposalMatch backend: non-profit profile extraction and matchmaking API.

Start with: uvicorn proposalmatch.main:app --reload --port 8000
"""
