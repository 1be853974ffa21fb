from __future__ import annotations

import re

_LIGATURES = {
    "ﬀ": "ff",
    "ﬁ": "fi",
    "ﬂ": "fl",
    "ﬃ": "ffi",
    "ﬄ": "ffl",
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "…": "...",
    " ": " ",
    "​": "",
    "﻿": "",
}

_WIDE_CAPS_RE = re.compile(r"\b[A-Z](?:[ \t][A-Z]){3,}\b")
_WIDE_TITLE_RE = re.compile(r"\b[A-Z](?:[ \t][a-z]){3,}\b")
_WORD_RE = re.compile(r"\b[A-Za-z]{4,}\b")
_CAMEL_SPLIT_RE = re.compile(r"([a-z])([A-Z][a-z])")

# Mixed-case product names that must survive camel-case splitting.
PROTECTED_CAMEL_WORDS = frozenset(
    word.lower()
    for word in (
        "JavaScript", "TypeScript", "CoffeeScript", "GitHub", "GitLab", "BitBucket", "PostgreSQL",
        "MySQL", "MongoDB", "DynamoDB", "CouchDB", "InfluxDB", "LinkedIn", "PowerPoint", "PowerShell",
        "PowerBI", "FastAPI", "DevOps", "DevSecOps", "MLOps", "NumPy", "SciPy", "PyTorch", "TensorFlow",
        "WordPress", "YouTube", "OpenAI", "BigQuery", "GraphQL", "NoSQL", "SharePoint", "QuickBooks",
        "HubSpot", "SalesForce", "ServiceNow", "WebSocket", "WebSockets", "NextJs", "NodeJs", "VueJs",
        "ReactJs", "AngularJs", "JupyterLab", "RabbitMQ", "ElasticSearch", "OpenShift", "CloudFormation",
        "CloudWatch", "AutoCAD", "SolidWorks", "PhotoShop", "InDesign", "QuickSight", "LangChain",
        "LlamaIndex", "HuggingFace", "ScikitLearn", "MacBook", "iPhone", "JetBrains", "IntelliJ",
        "PyCharm", "WebStorm", "SnowFlake", "DataBricks", "PagerDuty", "TeamCity",
    )
)


def normalize_ligatures(text: str) -> str:
    for source, replacement in _LIGATURES.items():
        text = text.replace(source, replacement)
    return text


def fix_wide_spacing(text: str) -> str:
    """Rejoin letters split by single spaces, e.g. ``S K I L L S``."""
    text = _WIDE_CAPS_RE.sub(lambda match: re.sub(r"[ \t]", "", match.group(0)), text)
    return _WIDE_TITLE_RE.sub(lambda match: re.sub(r"[ \t]", "", match.group(0)), text)


def _split_word(match: re.Match[str]) -> str:
    word = match.group(0)
    if word.lower() in PROTECTED_CAMEL_WORDS:
        return word
    return _CAMEL_SPLIT_RE.sub(r"\1 \2", word)


def split_merged_words(text: str) -> str:
    """Split ``SeniorManager`` style merges while keeping known product names."""
    return _WORD_RE.sub(_split_word, text)


def is_garbage_line(line: str) -> bool:
    stripped = line.strip()
    if len(stripped) <= 5:
        return False
    alnum = sum(1 for char in stripped if char.isalnum())
    return alnum / len(stripped) < 0.3


def sanitize_text(text: str) -> str:
    """Deterministic cleanup of extraction artifacts before normalization."""
    if not text:
        return ""

    clean = normalize_ligatures(text.replace("\r\n", "\n").replace("\r", "\n"))
    clean = fix_wide_spacing(clean)
    clean = split_merged_words(clean)

    lines: list[str] = []
    for line in clean.split("\n"):
        if is_garbage_line(line):
            continue
        lines.append(re.sub(r"[ \t]+", " ", line).strip())
    clean = "\n".join(lines)
    return re.sub(r"\n{3,}", "\n\n", clean).strip()
