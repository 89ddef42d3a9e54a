# compiles a finished report into a self-contained slide deck
from typing import List, Dict, Any, Optional
import logging

from jinja2 import Environment, BaseLoader, select_autoescape

from .markup import ReportDocument, text_of, inner_html
from .models import Deck, Slide, SlideType, ExtractedSection

logger = logging.getLogger(__name__)

HERO_ID = "hero"
DEFAULT_TITLE = "Report"
DEFAULT_SUBTITLE = "Analysis Report"

# table of contents cards cycle through these
TOC_PALETTE = [
    {"bg": "rgba(59,130,246,0.1)", "bg_end": "rgba(59,130,246,0.05)", "border": "rgba(59,130,246,0.2)",
     "badge": "linear-gradient(135deg, #3b82f6 0%, #1e40af 100%)", "icon": "rgba(59,130,246,0.15)"},
    {"bg": "rgba(16,185,129,0.1)", "bg_end": "rgba(16,185,129,0.05)", "border": "rgba(16,185,129,0.2)",
     "badge": "linear-gradient(135deg, #10b981 0%, #047857 100%)", "icon": "rgba(16,185,129,0.15)"},
    {"bg": "rgba(245,158,11,0.1)", "bg_end": "rgba(245,158,11,0.05)", "border": "rgba(245,158,11,0.2)",
     "badge": "linear-gradient(135deg, #f59e0b 0%, #d97706 100%)", "icon": "rgba(245,158,11,0.15)"},
    {"bg": "rgba(147,51,234,0.1)", "bg_end": "rgba(147,51,234,0.05)", "border": "rgba(147,51,234,0.2)",
     "badge": "linear-gradient(135deg, #9333ea 0%, #7c3aed 100%)", "icon": "rgba(147,51,234,0.15)"},
    {"bg": "rgba(6,182,212,0.1)", "bg_end": "rgba(6,182,212,0.05)", "border": "rgba(6,182,212,0.2)",
     "badge": "linear-gradient(135deg, #06b6d4 0%, #0891b2 100%)", "icon": "rgba(6,182,212,0.15)"},
]
TOC_EMOJIS = ["📊", "💰", "📈", "🌐", "🎯", "💸", "✅"]
HERO_PILL_EMOJIS = ["📊", "💼", "📈"]

DECK_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{ deck.title }}</title>
{% if deck.report_styles %}  <style>
{{ deck.report_styles | safe }}
  </style>
{% endif %}  <style>
    :root {
      --primary: #3b82f6;
      --success: #10b981;
      --warning: #f59e0b;
      --danger: #ef4444;
      --purple: #9333ea;
      --cyan: #06b6d4;
      --dark: #1e293b;
      --gray: #64748b;
    }
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body { font-family: 'Segoe UI', system-ui, sans-serif; overflow: hidden; background: #f8fafc; color: var(--dark); }
    .container { width: 100vw; height: 100vh; display: flex; flex-direction: column; }
    .nav {
      background: linear-gradient(90deg, #1e40af 0%, #93c5fd 100%);
      padding: 16px 24px; display: flex; justify-content: space-between; align-items: center;
      color: white; z-index: 100; gap: 20px; transition: background 0.4s ease;
    }
    .slide-menu {
      flex: 1; display: flex; gap: 8px; overflow-x: auto; overflow-y: hidden; white-space: nowrap;
      scrollbar-width: thin; scrollbar-color: rgba(255,255,255,0.3) transparent;
    }
    .slide-menu::-webkit-scrollbar { height: 4px; }
    .slide-menu::-webkit-scrollbar-thumb { background: rgba(255,255,255,0.3); border-radius: 2px; }
    .slide-menu-item {
      padding: 6px 14px; border-radius: 16px; background: rgba(255,255,255,0.15); cursor: pointer;
      font-size: 0.85rem; font-weight: 500; transition: all 0.2s; flex-shrink: 0;
    }
    .slide-menu-item:hover { background: rgba(255,255,255,0.25); transform: translateY(-1px); }
    .slide-menu-item.active { background: rgba(255,255,255,0.35); font-weight: 600; }
    .nav button {
      background: rgba(255,255,255,0.2); border: none; color: white; padding: 8px 20px;
      border-radius: 20px; cursor: pointer; font-weight: 600; font-size: 14px;
    }
    .nav button:hover { background: rgba(255,255,255,0.3); }
    .slides { flex: 1; position: relative; overflow: hidden; }
    .slide {
      position: absolute; top: 0; left: 0; width: 100%; height: 100%; opacity: 0; visibility: hidden;
      transition: opacity 0.4s, visibility 0.4s; overflow-y: auto; padding: 40px 80px;
    }
    .slide.active { opacity: 1; visibility: visible; }
    .slide.hero-slide { padding: 0; }
    .indicators { position: fixed; bottom: 40px; left: 50%; transform: translateX(-50%); display: flex; gap: 10px; z-index: 100; }
    .indicator { width: 10px; height: 10px; border-radius: 50%; background: rgba(59,130,246,0.3); cursor: pointer; transition: all 0.3s; }
    .indicator.active { background: #3b82f6; transform: scale(1.3); }
    .slide h1 { font-size: 2.5rem; margin-bottom: 24px; }
    .slide h2 { font-size: 2rem; margin: 20px 0 16px; }
    .slide h3 { font-size: 1.5rem; margin: 16px 0 12px; }
    .slide p { font-size: 1.1rem; line-height: 1.7; margin: 12px 0; }
    .slide-header { display: flex; align-items: center; gap: 20px; margin-bottom: 40px; }
    .icon-circle {
      display: inline-flex; width: 64px; height: 64px; border-radius: 16px; align-items: center;
      justify-content: center; font-size: 28px; flex-shrink: 0;
    }
    .toc-grid { display: grid; grid-template-columns: repeat(2, 1fr); gap: 24px; margin-top: 32px; max-width: 1200px; }
    .toc-card { cursor: pointer; padding: 28px; border-radius: 20px; transition: all 0.3s ease; box-shadow: 0 2px 8px rgba(0,0,0,0.08); }
    .toc-card:hover { transform: translateY(-6px); box-shadow: 0 12px 28px rgba(0,0,0,0.15); }
    .number-badge {
      width: 52px; height: 52px; border-radius: 14px; display: flex; align-items: center; justify-content: center;
      color: white; font-size: 1.3rem; font-weight: 700; flex-shrink: 0;
    }
    .hero {
      height: 100%; display: flex; flex-direction: column; justify-content: center; align-items: center;
      text-align: center; background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white;
      padding: 80px 60px; position: relative; overflow: hidden;
    }
    .hero-circle { position: absolute; border-radius: 50%; background: rgba(255,255,255,0.1); }
    .hero-content { position: relative; z-index: 1; }
    .hero-kicker {
      display: inline-block; background: rgba(255,255,255,0.15); padding: 8px 20px; border-radius: 20px;
      font-size: 0.85rem; font-weight: 600; margin-bottom: 20px; letter-spacing: 1px; text-transform: uppercase;
    }
    .hero h1 { font-size: 4rem; margin: 0 0 20px 0; color: white; font-weight: 700; letter-spacing: -1px; }
    .hero p { font-size: 1.4rem; opacity: 0.95; margin: 0 auto; max-width: 700px; line-height: 1.6; color: white; }
    .hero-pills { display: flex; gap: 12px; justify-content: center; margin-top: 32px; flex-wrap: wrap; }
    .hero-pill {
      background: rgba(255,255,255,0.25); padding: 10px 24px; border-radius: 20px; font-weight: 600;
      font-size: 0.95rem; border: 1px solid rgba(255,255,255,0.2); display: flex; align-items: center; gap: 8px;
    }
  </style>
</head>
<body>
  <div class="container">
    <div class="nav" id="nav">
      <button onclick="prev()">← Previous</button>
      <div class="slide-menu" id="slideMenu"></div>
      <span id="counter" style="font-size:0.9rem; opacity:0.8;">1 / {{ deck.slides | length }}</span>
      <button onclick="next()">Next →</button>
    </div>
    <div class="slides">
      <div class="slide hero-slide active" data-index="0" data-title="{{ deck.slides[0].title }}">
        <div class="hero">
          <div class="hero-circle" style="top:-50px; right:-50px; width:200px; height:200px;"></div>
          <div class="hero-circle" style="bottom:-80px; left:-80px; width:250px; height:250px;"></div>
          <div class="hero-content">
            <div class="hero-kicker">Professional Analysis</div>
            <h1>{{ deck.title }}</h1>
            <p>{{ deck.subtitle }}</p>
            {% if pills %}<div class="hero-pills">
              {% for pill in pills %}<div class="hero-pill"><span>{{ pill.emoji }}</span>{{ pill.title }}</div>
              {% endfor %}
            </div>{% endif %}
          </div>
        </div>
      </div>
      <div class="slide" data-index="1" data-title="{{ deck.slides[1].title }}">
        <div class="slide-header">
          <div class="icon-circle" style="background: var(--primary); color: white;">📋</div>
          <div>
            <h1>Table of Contents</h1>
            <p style="color: var(--gray);">Navigate through the presentation</p>
          </div>
        </div>
        <div class="toc-grid">
          {% for entry in toc %}<div class="toc-card" style="background:linear-gradient(135deg, {{ entry.color.bg }} 0%, {{ entry.color.bg_end }} 100%); border:1px solid {{ entry.color.border }};" onclick="goTo({{ entry.slide_index }})">
            <div style="display:flex; align-items:center; gap:16px;">
              <div class="number-badge" style="background:{{ entry.color.badge }};">{{ entry.number }}</div>
              <div style="flex:1;">
                <div style="width:48px; height:48px; border-radius:12px; background:{{ entry.color.icon }}; display:flex; align-items:center; justify-content:center; font-size:24px; margin-bottom:8px;">{{ entry.emoji }}</div>
                <h3 style="margin:0; color:#1e293b; font-size:1.2rem;">{{ entry.title }}</h3>
              </div>
            </div>
          </div>
          {% endfor %}
        </div>
      </div>
      {% for section in deck.sections %}<div class="slide" data-index="{{ loop.index0 + 2 }}" data-title="{{ deck.slides[loop.index0 + 2].title }}" data-section="{{ section.id }}">
{{ section.content | safe }}
      </div>
      {% endfor %}
    </div>
    <div class="indicators" id="indicators"></div>
  </div>
  <script>
    let current = 0;
    const slides = document.querySelectorAll('.slide');
    const total = slides.length;
    const nav = document.getElementById('nav');
    const counter = document.getElementById('counter');
    const slideMenu = document.getElementById('slideMenu');
    const indicatorsContainer = document.getElementById('indicators');

    slides.forEach((slide, i) => {
      const item = document.createElement('div');
      item.className = 'slide-menu-item' + (i === 0 ? ' active' : '');
      item.textContent = slide.dataset.title || 'Slide ' + (i + 1);
      item.onclick = () => goTo(i);
      slideMenu.appendChild(item);

      const dot = document.createElement('div');
      dot.className = 'indicator' + (i === 0 ? ' active' : '');
      dot.onclick = () => goTo(i);
      indicatorsContainer.appendChild(dot);
    });

    function update() {
      slides.forEach((s, i) => s.classList.toggle('active', i === current));
      document.querySelectorAll('.indicator').forEach((d, i) => d.classList.toggle('active', i === current));
      document.querySelectorAll('.slide-menu-item').forEach((m, i) => m.classList.toggle('active', i === current));

      const progress = total > 1 ? (current / (total - 1)) * 100 : 100;
      const start = Math.max(0, progress - 15);
      nav.style.background = 'linear-gradient(90deg, #1e40af 0%, #1e40af ' + start + '%, #3b82f6 ' + progress + '%, #93c5fd 100%)';
      counter.textContent = (current + 1) + ' / ' + total;

      const activeItem = slideMenu.children[current];
      if (activeItem) {
        activeItem.scrollIntoView({ behavior: 'smooth', block: 'nearest', inline: 'center' });
      }
    }

    function goTo(index) {
      if (index >= 0 && index < total) {
        current = index;
        update();
      }
    }

    function next() { goTo(current + 1); }
    function prev() { goTo(current - 1); }

    document.addEventListener('keydown', e => {
      if (e.key === 'ArrowRight' || e.key === ' ') { e.preventDefault(); next(); }
      if (e.key === 'ArrowLeft') { e.preventDefault(); prev(); }
    });
  </script>
</body>
</html>
"""


# class that turns a finished report into a navigable deck
class DeckCompiler:
    # initialize compiler with a jinja environment that escapes text by default
    def __init__(self):
        self.env = Environment(
            loader=BaseLoader(),
            autoescape=select_autoescape(["html", "xml"], default_for_string=True)
        )
        self.template = self.env.from_string(DECK_TEMPLATE)

    # sections in document order, hero and empty sections left out
    def extract_sections(self, document: ReportDocument) -> List[ExtractedSection]:
        sections = []
        for index, section in enumerate(document.sections()):
            section_id = section.get("id")
            if section_id == HERO_ID:
                continue

            content = inner_html(section)
            if not section_id or not content.strip():
                continue

            heading = section.find("h2")
            title = text_of(heading) if heading is not None else ""
            sections.append(ExtractedSection(
                id=section_id,
                title=title or f"Section {index + 1}",
                content=content
            ))
        return sections

    # hero h1, then any h1, then <title>
    def extract_title(self, document: ReportDocument) -> str:
        hero = self._hero(document)
        candidates = [
            hero.find("h1") if hero is not None else None,
            document.first("h1"),
            document.first("title")
        ]
        for element in candidates:
            text = text_of(element) if element is not None else ""
            if text:
                return text
        return DEFAULT_TITLE

    def extract_subtitle(self, document: ReportDocument) -> str:
        hero = self._hero(document)
        paragraph = hero.find("p") if hero is not None else None
        return text_of(paragraph) or DEFAULT_SUBTITLE

    # the report's own <style> blocks, kept so copied markup renders the same
    def extract_styles(self, document: ReportDocument) -> str:
        return "\n".join(style.decode_contents() for style in document.find_all("style"))

    def _hero(self, document: ReportDocument):
        for section in document.sections():
            if section.get("id") == HERO_ID:
                return section
        return None

    # build the deck model: title slide, contents slide, one slide per section
    def build_deck(self, report_html: str) -> Deck:
        document = ReportDocument(report_html)
        sections = self.extract_sections(document)
        title = self.extract_title(document)

        slides = [
            Slide(index=0, type=SlideType.TITLE, title=title),
            Slide(index=1, type=SlideType.CONTENTS, title="Table of Contents")
        ]
        for offset, section in enumerate(sections):
            index = offset + 2
            slides.append(Slide(
                index=index,
                type=SlideType.SECTION,
                title=section.title or f"Slide {index + 1}",
                section_id=section.id
            ))

        return Deck(
            title=title,
            subtitle=self.extract_subtitle(document),
            slides=slides,
            sections=sections,
            report_styles=self.extract_styles(document)
        )

    # render a deck model into one html string
    def render(self, deck: Deck) -> str:
        toc = [
            {
                "title": section.title,
                "number": f"{i + 1:02d}",
                "slide_index": i + 2,
                "color": TOC_PALETTE[i % len(TOC_PALETTE)],
                "emoji": TOC_EMOJIS[i % len(TOC_EMOJIS)]
            }
            for i, section in enumerate(deck.sections)
        ]
        pills = [
            {"title": section.title, "emoji": HERO_PILL_EMOJIS[i]}
            for i, section in enumerate(deck.sections[:len(HERO_PILL_EMOJIS)])
        ]
        return self.template.render(deck=deck, toc=toc, pills=pills)

    # report html in, deck html out
    def compile(self, report_html: str) -> str:
        deck = self.build_deck(report_html)
        html = self.render(deck)
        logger.info(f"✓ Compiled deck '{deck.title}' with {len(deck.slides)} slides")
        return html

    # summary numbers for a compiled deck
    def get_deck_statistics(self, deck: Deck) -> Dict[str, Any]:
        return {
            "title": deck.title,
            "total_slides": len(deck.slides),
            "content_slides": len(deck.sections),
            "section_ids": [section.id for section in deck.sections],
            "has_report_styles": bool(deck.report_styles)
        }


# global compiler; the jinja template is parsed once
_compiler: Optional[DeckCompiler] = None


def get_deck_compiler() -> DeckCompiler:
    global _compiler
    if _compiler is None:
        _compiler = DeckCompiler()
    return _compiler


def compile_presentation(report_html: str) -> str:
    return get_deck_compiler().compile(report_html)
