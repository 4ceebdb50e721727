"""Prompt builders for the Fit Normalizer and the Tone Polisher."""

from dataclasses import dataclass


@dataclass(slots=True)
class FitPromptArgs:
    target_industry: str
    target_role: str
    company: str
    role_title: str
    industry_text: str
    seniority_text: str


@dataclass(slots=True)
class TonePromptArgs:
    contact_name: str
    interaction_type: str
    days_since: int
    window: str
    shared_connection: str
    reasons: list[str]
    raw_message: str


def build_fit_prompt(args: FitPromptArgs) -> str:
    return f"""You normalize recruiting profile text so two profiles can be compared for fit.

Target profile:
- Target Industry: {args.target_industry}
- Target Role: {args.target_role}

Contact profile:
- Company: {args.company}
- Role Title: {args.role_title}
- Industry (as provided): {args.industry_text}
- Seniority indicators: {args.seniority_text}

Task: assess how well the contact matches the target profile.

Rules:
1. Be conservative. If a match is uncertain, answer "unknown" and keep confidence at or below 0.6.
2. Use only the information above. Do not invent facts.
3. Reply with a single JSON object and nothing else.

JSON schema:
{{
  "industry_match": 0 | 1 | "unknown",
  "role_match": 0 | 1 | "unknown",
  "seniority_bucket": "student" | "analyst" | "associate" | "manager_plus" | "unknown",
  "notes": {{
    "normalized_industry": string,
    "normalized_role": string
  }},
  "confidence": number between 0.0 and 1.0,
  "explanation": string (one sentence)
}}

Field meanings:
- industry_match: 1 if the industries clearly match, 0 if they clearly differ, "unknown" otherwise
- role_match: 1 if the roles clearly match, 0 if they clearly differ, "unknown" otherwise
- seniority_bucket: level of the contact's role
- notes: standardized industry and role names
- confidence: your confidence in this assessment (0.6 or lower when anything is "unknown")
- explanation: one short sentence

Reply with the JSON object now:"""


def build_tone_prompt(args: TonePromptArgs) -> str:
    reasons_text = "; ".join(args.reasons) if args.reasons else "Follow-up suggested"

    return f"""You rewrite an in-app reminder about a professional networking follow-up.

Context:
- Contact: {args.contact_name}
- Interaction type: {args.interaction_type}
- Days since last interaction: {args.days_since}
- Optimal window: {args.window}
- Shared connection: {args.shared_connection}
- Reasons: {reasons_text}
- Raw message: "{args.raw_message}"

Write a calm, optional notification of one or two sentences.

Constraints:
- Calm and never pushy; use optional language such as "If you want"
- No urgency or pressure
- No facts beyond the context above
- Do not mention AI or automation

JSON schema:
{{
  "title": string (short calm heading, at most 10 words),
  "body": string (one or two sentences)
}}

Reply with the JSON object now:"""
