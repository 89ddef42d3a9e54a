# keyword-based document profiles that steer report styling
from typing import Dict, Any, List
import logging

from .models import DocumentProfile

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "business"

# declaration order breaks ties
PROFILES: Dict[str, Dict[str, Any]] = {
    "academic": {
        "keywords": ["theorem", "proof", "lemma", "bibliography", "citation", "abstract", "methodology",
                     "hypothesis", "research", "study", "analysis", "equation", "formula"],
        "config": {
            "emojis": False,
            "math": True,
            "svg_style": "minimal",
            "color_scheme": "monochrome",
            "tone": "formal",
            "citations": True
        }
    },
    "business": {
        "keywords": ["quarterly", "revenue", "stakeholder", "kpi", "fiscal", "profit", "analysis", "market",
                     "strategy", "financial", "budget", "roi", "investment"],
        "config": {
            "emojis": False,
            "math": False,
            "svg_style": "corporate",
            "color_scheme": "blue-professional",
            "tone": "professional",
            "charts": "business-style"
        }
    },
    "tutorial": {
        "keywords": ["step", "how to", "guide", "learn", "tutorial", "beginner", "example", "introduction",
                     "getting started", "lesson"],
        "config": {
            "emojis": True,
            "math": False,
            "svg_style": "friendly",
            "color_scheme": "vibrant",
            "tone": "casual",
            "navigation": "step-by-step"
        }
    },
    "legal": {
        "keywords": ["whereas", "herein", "plaintiff", "defendant", "article", "statute", "jurisdiction",
                     "contract", "agreement", "law", "regulation", "clause"],
        "config": {
            "emojis": False,
            "math": False,
            "svg_style": "none",
            "color_scheme": "strict-monochrome",
            "tone": "strict-formal",
            "formatting": "preserve-exact"
        }
    }
}


# count how many of a profile's keywords occur in the text
def _keyword_hits(keywords: List[str], words: List[str], text: str) -> int:
    hits = 0
    for keyword in keywords:
        if " " in keyword:
            # multi-word keywords can only match the running text
            if keyword in text:
                hits += 1
        elif any(keyword in word for word in words):
            hits += 1
    return hits


# detect which profile a document's text belongs to
def analyze_document_type(content: str) -> DocumentProfile:
    """Pick the profile whose keywords occur most often.

    Single-word keywords match inside words ("research" matches
    "researchers"). Confidence is the share of the winner's keywords found.
    """
    if not content or not content.strip():
        logger.warning(f"Empty content for document analysis, defaulting to {DEFAULT_PROFILE} profile")
        return DocumentProfile(type=DEFAULT_PROFILE, confidence=0.0, config=PROFILES[DEFAULT_PROFILE]["config"])

    text = " ".join(content.lower().split())
    words = text.split(" ")

    scores = {name: _keyword_hits(profile["keywords"], words, text) for name, profile in PROFILES.items()}
    winner = max(scores, key=lambda name: scores[name])
    confidence = scores[winner] / len(PROFILES[winner]["keywords"])

    logger.info(f"Document profile: {winner} ({confidence:.0%} confidence), scores: {scores}")
    return DocumentProfile(type=winner, confidence=confidence, config=dict(PROFILES[winner]["config"]))


# render a profile into rules for the report prompt
def get_profile_instructions(profile: DocumentProfile) -> str:
    config = profile.config
    lines = [
        f"DOCUMENT PROFILE: {profile.type.upper()} ({profile.confidence:.0%} confidence)",
        "Apply these rules:"
    ]

    if config.get("emojis"):
        lines.append("- Emojis: allowed, use them sparingly to help readability")
    else:
        lines.append(f"- Emojis: forbidden, this is a {profile.type} document, use plain professional icons only")

    if config.get("math"):
        lines.append("- Math: render formulas with MathJax")

    lines.append(f"- SVG style: {config.get('svg_style', 'corporate')}")
    lines.append(f"- Colour scheme: {config.get('color_scheme', 'blue-professional')}")
    lines.append(f"- Tone: {config.get('tone', 'professional')}")

    if config.get("svg_style") == "none":
        lines.append("- No SVG illustrations for this document type, focus on clean text formatting")
    elif config.get("svg_style") == "minimal":
        lines.append("- At most 3-4 simple icons, no decorative charts")

    return "\n".join(lines)
