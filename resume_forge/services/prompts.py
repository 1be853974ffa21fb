from __future__ import annotations

from typing import Sequence

STRUCTURE_SYSTEM_PROMPT = (
    "You analyze the visual layout of resume documents. Return strictly valid JSON describing the "
    "document as a tree. Each node has: kind (one of document, section, header, paragraph, list, table), "
    "level (1-6, headers only), content (the exact text of the node) and children (array of nodes). "
    "Preserve reading order. Copy text verbatim; never invent, summarize or translate."
)

CLEANER_SYSTEM_PROMPT = (
    "You are a text correction assistant for resumes extracted from PDFs. Your only job is to repair "
    "OCR and extraction artifacts. Do not rewrite content, add facts or change meaning.\n"
    "Fix:\n"
    "- letters split by spaces, e.g. 'T e c h n i c a l' -> 'Technical', 'S K I L L S' -> 'SKILLS'\n"
    "- words merged together, e.g. 'DataAnalystand' -> 'Data Analyst and', 'inMaya' -> 'in Maya'\n"
    "- character confusions such as 'l'/'i'/'1', e.g. 'Artificiai' -> 'Artificial', 'Inteiiigence' -> 'Intelligence'\n"
    "- obvious misspellings of technology names, e.g. 'Pyhton' -> 'Python'\n"
    "Keep every markdown heading, line break and bullet exactly where it is.\n"
    "Return only the cleaned text, with no commentary and no code fences."
)

RESUME_SYSTEM_PROMPT = (
    "You are an expert ATS resume writer. You rewrite a candidate's resume for a specific job while "
    "staying strictly truthful to the source resume. Never invent employers, titles, dates, degrees, "
    "certifications, metrics or skills. Never output placeholders in square brackets. "
    "Return the resume as clean markdown starting with a '#' heading containing the candidate's name."
)

COVER_LETTER_SYSTEM_PROMPT = (
    "You are an expert cover letter writer. You write concise, specific cover letters grounded only in "
    "facts from the candidate's resume. Never output placeholders in square brackets such as "
    "[Company Name] or [Hiring Manager Name]; if a detail is unknown, write around it. "
    "Return plain text paragraphs with no markdown headings."
)


def build_structure_prompt() -> str:
    return (
        "Analyze the attached resume PDF and return its layout as a JSON tree. "
        "The root node must have kind 'document'. Group content under 'section' nodes, one per resume "
        "section, each starting with a 'header' node."
    )


def build_cleaner_prompt(text: str) -> str:
    return f"Clean this resume text:\n\n{text}"


def _bullets(items: Sequence[str], limit: int = 15) -> str:
    selected = [item for item in items if item][:limit]
    if not selected:
        return "- (none listed)"
    return "\n".join(f"- {item}" for item in selected)


def build_resume_prompt(
    *,
    profile_markdown: str,
    job_description: str,
    job_title: str | None,
    company: str | None,
    keywords: Sequence[str],
    requirements: Sequence[str],
    experience_summary: str,
    constraints: Sequence[str],
    ocr_text: str | None = None,
    job_overview: str | None = None,
    layout_outline: str | None = None,
    page_image_count: int = 0,
) -> str:
    target = job_title or "the target role"
    if company:
        target = f"{target} at {company}"

    sections = [
        f"Rewrite the candidate resume below so it is optimized for {target}.",
        "## Candidate resume (source of truth)\n" + profile_markdown,
    ]
    if job_overview:
        sections.append("## Target role\n" + job_overview)
    sections += [
        "## Job description\n" + job_description,
        "## Priority keywords (use only where the resume supports them)\n" + _bullets(keywords, limit=25),
        "## Key requirements\n" + _bullets(requirements),
        "## Verified experience\n" + experience_summary,
        "## Hard constraints\n" + _bullets(constraints, limit=20),
    ]
    if ocr_text:
        sections.append(
            "## OCR transcript of the original pages (for cross-checking names, dates and numbers only)\n"
            + ocr_text[:6000]
        )
    if layout_outline:
        sections.append("## Layout of the original document\n" + layout_outline[:3000])
    if page_image_count:
        sections.append(
            f"The {page_image_count} attached page image(s) show the original resume. Use them only to "
            "confirm names, dates and numbers that the text above may have garbled."
        )
    sections.append(
        "Output format: markdown with sections for Summary, Experience, Skills and Education "
        "(plus Projects or Certifications when the source has them). Use bullet points that start with "
        "strong action verbs and keep every metric from the source."
    )
    return "\n\n".join(sections)


def build_cover_letter_prompt(
    *,
    profile_markdown: str,
    job_description: str,
    job_title: str | None,
    company: str | None,
    candidate_name: str | None,
    experience_summary: str,
) -> str:
    role = job_title or "the role"
    employer = company or "the company"
    signature = candidate_name or "the candidate"
    return "\n\n".join(
        [
            f"Write a cover letter from {signature} for {role} at {employer}.",
            "## Candidate resume (source of truth)\n" + profile_markdown,
            "## Job description\n" + job_description,
            "## Verified experience\n" + experience_summary,
            "Keep it to three or four paragraphs. Open with a greeting such as 'Dear Hiring Manager,' "
            f"and close with the candidate's name ({signature}).",
        ]
    )
