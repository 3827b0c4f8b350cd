"""
StepGate - Guided learning modules with blocking exercises

Streamlit application that renders a module section by section. Exercises
and quizzes must be solved before the content after them unlocks.

Usage:
    streamlit run app.py
"""

import asyncio
import base64

import streamlit as st

from stepgate.classroom import (
    LearningSession,
    MemoryStore,
    ModuleLoader,
    SectionStatus,
    SqliteStore,
)
from stepgate.config import configure_logging, get_settings
from stepgate.errors import ModuleDefinitionError, StorageUnavailable
from stepgate.schemas import (
    CodeExerciseSection,
    CodeSection,
    ExerciseSection,
    Feedback,
    Outcome,
    QuizSection,
)
from stepgate.viewer import (
    get_section_css,
    option_letter,
    render_objectives,
    render_progress_bar,
    render_section,
)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

SETTINGS = get_settings()
configure_logging(SETTINGS.log_level)

st.set_page_config(
    page_title="StepGate",
    page_icon="🎓",
    layout="wide",
    initial_sidebar_state="expanded",
)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "modules" not in st.session_state:
        try:
            st.session_state.modules = ModuleLoader(SETTINGS.modules_dir).load_all()
            st.session_state.load_error = None
        except (FileNotFoundError, ModuleDefinitionError) as e:
            st.session_state.modules = {}
            st.session_state.load_error = str(e)

    if "store" not in st.session_state:
        try:
            st.session_state.store = SqliteStore(SETTINGS.progress_db)
            st.session_state.store_warning = None
        except StorageUnavailable as e:
            # Progress still works for this browser session
            st.session_state.store = MemoryStore()
            st.session_state.store_warning = str(e)

    if "sessions" not in st.session_state:
        st.session_state.sessions = {}

    if "feedback" not in st.session_state:
        st.session_state.feedback = {}

    if "current_module_id" not in st.session_state:
        ids = sorted(st.session_state.modules)
        st.session_state.current_module_id = ids[0] if ids else None


def current_session() -> LearningSession | None:
    module_id = st.session_state.current_module_id
    if not module_id:
        return None
    sessions = st.session_state.sessions
    if module_id not in sessions:
        sessions[module_id] = LearningSession(
            st.session_state.modules[module_id],
            st.session_state.store,
        )
    return sessions[module_id]


def feedback_key(index) -> tuple:
    return (st.session_state.current_module_id, index)


# -----------------------------------------------------------------------------
# Sidebar: Modules and Progress
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with module picker, progress and objectives."""
    st.sidebar.title("🎓 StepGate")

    if st.session_state.load_error:
        st.sidebar.error(st.session_state.load_error)
        return
    if st.session_state.store_warning:
        st.sidebar.warning(f"Progress will not be saved: {st.session_state.store_warning}")

    modules = st.session_state.modules
    if not modules:
        st.sidebar.info(f"No modules found in {SETTINGS.modules_dir}")
        return

    ids = sorted(modules)
    module_id = st.sidebar.selectbox(
        "Module",
        ids,
        index=ids.index(st.session_state.current_module_id),
        format_func=lambda mid: modules[mid].title or mid,
    )
    st.session_state.current_module_id = module_id

    session = current_session()
    st.sidebar.divider()
    st.sidebar.markdown(get_section_css(), unsafe_allow_html=True)
    st.sidebar.markdown("**Progress**")
    st.sidebar.markdown(render_progress_bar(session.progress), unsafe_allow_html=True)

    st.sidebar.markdown("**Objectives**")
    st.sidebar.markdown(render_objectives(session.objective_statuses()), unsafe_allow_html=True)

    st.sidebar.divider()
    if st.sidebar.button("Reset module progress"):
        session.reset()
        st.session_state.feedback = {
            key: value for key, value in st.session_state.feedback.items()
            if key[0] != module_id
        }
        st.rerun()


# -----------------------------------------------------------------------------
# Main Content: Sections
# -----------------------------------------------------------------------------

def show_feedback(feedback: Feedback | None):
    if feedback is None:
        return
    if feedback.outcome == Outcome.CORRECT:
        if feedback.message:
            st.success(feedback.message)
    elif feedback.outcome == Outcome.INVALID:
        st.warning(feedback.message)
    else:
        st.error(feedback.message)

    execution = feedback.execution
    if execution is not None:
        output = execution.stderr if execution.has_error_output else execution.stdout
        st.code(output or "(no text output)")
        if execution.image_base64:
            st.image(base64.b64decode(execution.image_base64))


def render_exercise_controls(session: LearningSession, status: SectionStatus):
    section = status.section
    index = status.index

    if isinstance(section, ExerciseSection) and section.exercise_type == "numeric":
        answer = st.text_input("Your answer", key=f"answer_{section_key(index)}")
        if st.button("Check", key=f"check_{section_key(index)}"):
            st.session_state.feedback[feedback_key(index)] = session.submit_numeric(index, answer)
            st.rerun()

    elif isinstance(section, (ExerciseSection, QuizSection)):
        choice = st.radio(
            "Options",
            list(range(len(section.options))),
            index=None,
            format_func=lambda i: f"{option_letter(i)}. {section.options[i]}",
            key=f"options_{section_key(index)}",
            label_visibility="collapsed",
        )
        if choice is not None:
            session.select_option(index, choice)
        if st.button("Check", key=f"check_{section_key(index)}"):
            st.session_state.feedback[feedback_key(index)] = session.check_choice(index)
            st.rerun()

    elif isinstance(section, CodeExerciseSection):
        source = st.text_area(
            "Code",
            value=session.starter_code(index),
            height=200,
            key=f"code_{section_key(index)}",
        )
        col1, col2 = st.columns([1, 1])
        with col1:
            if st.button("Test my code", key=f"run_{section_key(index)}", disabled=status.running):
                st.session_state.feedback[feedback_key(index)] = asyncio.run(session.submit_code(index, source))
                st.rerun()
        with col2:
            if section.solution:
                with st.expander("Show solution"):
                    st.code(section.solution, language="python")

    hint = getattr(section, "hint", None)
    if hint:
        with st.expander("💡 Hint"):
            st.markdown(hint, unsafe_allow_html=True)


def render_code_controls(session: LearningSession, status: SectionStatus):
    index = status.index
    source = st.text_area(
        "Code",
        value=session.starter_code(index),
        height=180,
        key=f"code_{section_key(index)}",
    )
    if st.button("▶ Run", key=f"run_{section_key(index)}", disabled=status.running):
        st.session_state.feedback[feedback_key(index)] = asyncio.run(session.run_code(index, source))
        st.rerun()


def section_key(index: int) -> str:
    return f"{st.session_state.current_module_id}_{index}"


def render_module_view():
    """Render every section of the current module."""
    if st.session_state.load_error:
        st.error(st.session_state.load_error)
        return

    session = current_session()
    if session is None:
        st.info("Add a module file to the modules directory to begin.")
        return

    module = session.module
    st.title(module.title or module.id)
    st.markdown(get_section_css(), unsafe_allow_html=True)

    for status in session.section_statuses():
        html_body = render_section(status)
        if not html_body:
            continue
        st.markdown(html_body, unsafe_allow_html=True)

        if isinstance(status.section, CodeSection):
            render_code_controls(session, status)
        elif status.blocking and status.unlocked and not status.completed:
            render_exercise_controls(session, status)

        show_feedback(st.session_state.feedback.get(feedback_key(status.index)))

    render_final_quiz(session)
    render_checkpoint(session)


def render_final_quiz(session: LearningSession):
    quiz = session.module.quiz
    if quiz is None:
        return
    st.divider()
    st.subheader(quiz.title or "Final quiz")
    st.markdown(quiz.question, unsafe_allow_html=True)
    choice = st.radio(
        "Final quiz options",
        list(range(len(quiz.options))),
        index=None,
        format_func=lambda i: f"{option_letter(i)}. {quiz.options[i]}",
        key=f"final_quiz_{session.module.id}",
        label_visibility="collapsed",
    )
    if st.button("Check", key=f"check_final_{session.module.id}"):
        st.session_state.feedback[feedback_key("final")] = session.check_final_quiz(choice)
        st.rerun()
    show_feedback(st.session_state.feedback.get(feedback_key("final")))


def render_checkpoint(session: LearningSession):
    """Render the module completion checkpoint."""
    st.divider()
    if session.is_module_completed():
        st.success("✓ Module completed!")
        return

    if st.button(
        "Validate module",
        type="primary",
        disabled=not session.can_checkpoint(),
        use_container_width=True,
    ):
        st.session_state.feedback[feedback_key("checkpoint")] = session.complete_checkpoint()
        st.rerun()
    show_feedback(st.session_state.feedback.get(feedback_key("checkpoint")))


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()
    render_module_view()


if __name__ == "__main__":
    main()
