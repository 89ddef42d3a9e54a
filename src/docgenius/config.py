"""
Configuration settings for docgenius.

Values are read once from the environment at import time.
"""

import os

#==============================================================================
# GENERATION SERVICE
#==============================================================================

OLLAMA_BASE_URL = os.getenv('OLLAMA_BASE_URL', 'http://localhost:11434')
OLLAMA_MODEL = os.getenv('OLLAMA_MODEL', 'llama3')

# seconds before a single generation call is abandoned
LLM_TIMEOUT_SECONDS = float(os.getenv('LLM_TIMEOUT_SECONDS', '120'))

# overload retries: wait = min(base * 2**attempt, max)
LLM_MAX_RETRIES = int(os.getenv('LLM_MAX_RETRIES', '5'))
LLM_BACKOFF_BASE_SECONDS = float(os.getenv('LLM_BACKOFF_BASE_SECONDS', '2'))
LLM_BACKOFF_MAX_SECONDS = float(os.getenv('LLM_BACKOFF_MAX_SECONDS', '30'))

# http status codes treated as "service overloaded, try again later"
TRANSIENT_STATUS_CODES = (429, 502, 503, 504, 529)

#==============================================================================
# HTTP SURFACE
#==============================================================================

MAX_UPLOAD_MB = int(os.getenv('MAX_UPLOAD_MB', '50'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

#==============================================================================
# REPORT EDITING
#==============================================================================

# class fragments that mark an element as a card
CARD_MARKERS = tuple(
    marker.strip()
    for marker in os.getenv(
        'CARD_MARKERS',
        'card,stat-box,metric,kpi,tile,panel,alert-box'
    ).split(',')
    if marker.strip()
)

# default left accent bar synthesized when an element has none
DEFAULT_BAR_WIDTH = os.getenv('DEFAULT_BAR_WIDTH', '4px')

# how much of the pdf text is sent along with ai-backed edits
PDF_CONTEXT_CHARS = int(os.getenv('PDF_CONTEXT_CHARS', '6000'))
