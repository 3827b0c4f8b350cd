"""
Section renderer - Generate HTML for module display.

Features:
- Themed boxes for informational sections
- Exercise, code exercise and quiz cards with badges
- Lock overlay for blocking sections not yet unlocked
- Progress bar and objectives list

Section `content`, `question` and `instruction` fields are authored HTML and
are inserted as-is; titles, options and code are escaped.
"""

import html
import logging

from stepgate.classroom import SectionStatus
from stepgate.schemas import (
    BoxSection,
    CodeExerciseSection,
    CodeSection,
    ExerciseSection,
    QuizSection,
    UnknownSection,
)

logger = logging.getLogger(__name__)


def get_section_css() -> str:
    """Get CSS styles for section display."""
    return """
    <style>
    .section-wrapper {
        position: relative;
        margin: 1.5em 0;
    }
    .section-wrapper.locked .box {
        filter: blur(3px);
        pointer-events: none;
    }
    .box {
        border-radius: 12px;
        padding: 1.2em 1.5em;
        border-left: 4px solid #607D8B;
        background: #fafafa;
    }
    .box.concept { border-color: #1976D2; background: #e3f2fd; }
    .box.intuition { border-color: #7B1FA2; background: #f3e5f5; }
    .box.example { border-color: #388E3C; background: #e8f5e9; }
    .box.math { border-color: #455A64; background: #eceff1; }
    .box.warning { border-color: #F57C00; background: #fff3e0; }
    .box.application { border-color: #00796B; background: #e0f2f1; }
    .box.exercise, .box.exercise-code { border-color: #C62828; background: #ffebee; }
    .box.quiz { border-color: #1565C0; background: #e8eaf6; }
    .section-wrapper.completed .box {
        border-color: #2E7D32;
    }
    .exercise-header {
        display: flex;
        justify-content: space-between;
        align-items: center;
    }
    .exercise-badge {
        font-size: 0.8em;
        font-weight: 600;
        padding: 0.2em 0.8em;
        border-radius: 12px;
        background: #C62828;
        color: white;
    }
    .quiz-badge { background: #1565C0; }
    .done-badge { background: #2E7D32; }
    .option-letter {
        font-weight: 700;
        margin-right: 0.5em;
    }
    .lock-overlay {
        position: absolute;
        inset: 0;
        display: flex;
        align-items: center;
        justify-content: center;
        background: rgba(255, 255, 255, 0.6);
        border-radius: 12px;
    }
    .lock-message {
        text-align: center;
        color: #555;
    }
    .progress-track {
        background: #e0e0e0;
        border-radius: 8px;
        height: 10px;
    }
    .progress-fill {
        background: linear-gradient(90deg, #667eea, #764ba2);
        border-radius: 8px;
        height: 10px;
    }
    .objectives li.completed {
        color: #2E7D32;
        text-decoration: line-through;
    }
    </style>
    """


def option_letter(index: int) -> str:
    return chr(ord("A") + index)


def render_box(section: BoxSection) -> str:
    icon = f"{html.escape(section.icon)} " if section.icon else ""
    return (
        f'<div class="box {section.type}">'
        f'<h3>{icon}{html.escape(section.title)}</h3>'
        f'<div class="box-content">{section.content}</div>'
        '</div>'
    )


def render_code_section(section: CodeSection) -> str:
    parts = ['<div class="box code">', f'<h3>{html.escape(section.title)}</h3>']
    if section.description:
        parts.append(f'<p class="code-description">{section.description}</p>')
    parts.append('</div>')
    return ''.join(parts)


def _badge(text: str, extra: str = "") -> str:
    return f'<span class="exercise-badge {extra}">{text}</span>'


def render_exercise(section: ExerciseSection, completed: bool = False) -> str:
    parts = [
        '<div class="box exercise">',
        '<div class="exercise-header">',
        f'<h3>{html.escape(section.title)}</h3>',
        _badge("Done", "done-badge") if completed else _badge("Required exercise"),
        '</div>',
        f'<div class="exercise-content">{section.question}</div>',
    ]
    if section.exercise_type == "mcq":
        parts.append('<div class="exercise-options">')
        for i, option in enumerate(section.options):
            parts.append(
                f'<div class="exercise-option"><span class="option-letter">{option_letter(i)}</span>'
                f'<span class="option-text">{html.escape(option)}</span></div>'
            )
        parts.append('</div>')
    parts.append('</div>')
    return ''.join(parts)


def render_code_exercise(section: CodeExerciseSection, completed: bool = False) -> str:
    return ''.join([
        '<div class="box exercise-code">',
        '<div class="exercise-header">',
        f'<h3>{html.escape(section.title)}</h3>',
        _badge("Done", "done-badge") if completed else _badge("Code challenge"),
        '</div>',
        f'<div class="exercise-content">{section.instruction}</div>',
        '</div>',
    ])


def render_quiz(section: QuizSection, completed: bool = False) -> str:
    title = section.title or "Comprehension quiz"
    return ''.join([
        '<div class="box quiz">',
        '<div class="exercise-header">',
        f'<h3>{html.escape(title)}</h3>',
        _badge("Done", "done-badge") if completed else _badge("Quiz", "quiz-badge"),
        '</div>',
        f'<div class="quiz-question">{section.question}</div>',
        '</div>',
    ])


def render_lock_overlay() -> str:
    return (
        '<div class="lock-overlay"><div class="lock-message">'
        '<span class="lock-icon">&#128274;</span>'
        '<p>Complete the previous exercise to unlock</p>'
        '</div></div>'
    )


def render_section(status: SectionStatus) -> str:
    """
    Render one section with its lock/completion state.

    Only blocking sections are ever shown locked. Unknown section types
    render nothing.
    """
    section = status.section
    if isinstance(section, BoxSection):
        body = render_box(section)
    elif isinstance(section, CodeSection):
        body = render_code_section(section)
    elif isinstance(section, ExerciseSection):
        body = render_exercise(section, status.completed)
    elif isinstance(section, CodeExerciseSection):
        body = render_code_exercise(section, status.completed)
    elif isinstance(section, QuizSection):
        body = render_quiz(section, status.completed)
    else:
        declared = section.declared_type if isinstance(section, UnknownSection) else section.type
        logger.warning(f"UnknownSectionType: not rendering section {status.index} ({declared!r})")
        return ""

    classes = ["section-wrapper"]
    locked = status.blocking and not status.unlocked
    if locked:
        classes.append("locked")
    if status.completed:
        classes.append("completed")

    overlay = render_lock_overlay() if locked else ""
    return f'<div id="section-{status.index}" class="{" ".join(classes)}">{body}{overlay}</div>'


def render_progress_bar(progress: int) -> str:
    width = max(0, min(100, progress))
    return (
        '<div class="progress-track">'
        f'<div class="progress-fill" style="width: {width}%"></div>'
        '</div>'
        f'<div class="progress-text">{width}%</div>'
    )


def render_objectives(objectives: list[tuple[str, bool]]) -> str:
    if not objectives:
        return ""
    items = []
    for i, (text, done) in enumerate(objectives):
        css = ' class="completed"' if done else ''
        items.append(f'<li id="objective-{i}"{css}>{html.escape(text)}</li>')
    return f'<ul class="objectives">{"".join(items)}</ul>'
