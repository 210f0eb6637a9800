from __future__ import annotations

MATCH_SCORING_PROMPT = """
You compare one resume against a batch of job listings.
Return strict JSON with keys:
- scores: array of objects with keys:
  - jobId: string, the ID of the job exactly as given
  - score: integer 0..100
  - reason: string, short reason (max 10 words)

RESUME:
{resume_text}

JOBS:
{job_list}
""".strip()

MATCH_SCORING_JOB_LINE = "ID: {job_id} | Title: {title} | Desc: {description}"

TOOL_ROUTER_INSTRUCTIONS = """
You are an intelligent Career Assistant.

INSTRUCTIONS:
1. FILTER RULE (Priority High):
   - If the user asks for "Internships", "Contract", or "Full-time" roles,
     output strictly: CALL: UPDATE_FILTER("type", "Internship")
     (or "Contract" / "Full-time" accordingly).

2. FILTER RULE (Remote):
   - If the user asks for "Remote" or "Work from home",
     output strictly: CALL: UPDATE_FILTER("location", "Remote")

3. SEARCH RULE:
   - If the user asks for a specific job title (e.g. "Find Java jobs", "Search for Backend"),
     output strictly: CALL: FETCH_AND_SEARCH("job title")

4. HISTORY RULE:
   - If the user asks about their own history (e.g. "What did I apply to?"),
     output strictly: CALL: GET_APPLICATIONS()

- Otherwise, answer normally.
""".strip()
