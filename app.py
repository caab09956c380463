"""Streamlit interface for submitting environmental actions for verification."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import streamlit as st

from action_types import ActionCategory
from credit_ledger import ActionDetails, CreditLedger
from image_classifier import LabelClassifier, ModelUnavailable
from logging_config import setup_logging
from verification_pipeline import VerificationPipeline, load_classifier, verify_image_sync

setup_logging()

st.set_page_config(
    page_title="Eco Action Verifier",
    page_icon="🌿",
    layout="wide",
)

st.markdown(
    """
    <style>
        .stApp {
            background: linear-gradient(180deg, #e9f7ef 0%, #f0fff4 45%, #ffffff 100%);
            color: #0b4331;
        }
        .step-heading {
            font-weight: 700;
            color: #0b5d3a;
            margin-top: 0;
            margin-bottom: 0.75rem;
        }
        .stButton > button {
            background: linear-gradient(120deg, #15803d, #22c55e);
            border: none;
            color: #f0fdf4;
            border-radius: 999px;
            font-weight: 600;
        }
    </style>
    """,
    unsafe_allow_html=True,
)

LEDGER_KEY = "credit_ledger"


@st.cache_resource(show_spinner=True)
def get_classifier() -> Tuple[Optional[LabelClassifier], Optional[str]]:
    """Load MobileNetV2 once and share it across sessions.

    A load failure is cached too, so it is reported once instead of on every rerun.
    """
    try:
        return load_classifier(), None
    except ModelUnavailable as error:
        return None, str(error)


def initialize_state() -> None:
    """Ensure the session-scoped ledger exists."""
    st.session_state.setdefault(LEDGER_KEY, CreditLedger())
    st.session_state.setdefault("last_outcome", None)


def render_submission_form(pipeline: VerificationPipeline) -> None:
    st.markdown('<h3 class="step-heading">Upload Action</h3>', unsafe_allow_html=True)

    category = st.selectbox(
        "Action type",
        options=list(ActionCategory),
        format_func=lambda option: f"{option.display_name} (+{option.credit_value} credits)",
    )
    st.caption(f"{category.profile.description}. Example: {category.profile.example_action}.")

    uploaded = st.file_uploader("Photo of your action", type=["jpg", "jpeg", "png"])
    camera_input = st.camera_input("Or capture one now")
    description = st.text_input("Description")
    location = st.text_input("Location")
    people_involved = st.text_input("People involved")

    image_bytes = None
    if camera_input is not None:
        image_bytes = camera_input.getvalue()
    elif uploaded is not None:
        image_bytes = uploaded.getvalue()

    submitted = st.button(
        f"Upload and Earn {category.credit_value} Credits",
        disabled=image_bytes is None or not description,
    )
    if submitted and image_bytes is not None:
        details = ActionDetails(
            description=description,
            location=location,
            people_involved=people_involved,
        )
        with st.spinner("Checking your photo…"):
            st.session_state.last_outcome = verify_image_sync(pipeline, image_bytes, category, details)


def render_results(ledger: CreditLedger) -> None:
    st.markdown('<h3 class="step-heading">Your Eco Impact</h3>', unsafe_allow_html=True)
    st.metric("Total Credits", ledger.balance)

    outcome = st.session_state.last_outcome
    if outcome is None:
        st.info("Upload a photo of an action to earn credits.")
    elif outcome.accepted:
        st.success(outcome.verdict.rationale)
    else:
        st.warning(outcome.verdict.rationale)

    history: List[Dict[str, Any]] = [entry.as_dict() for entry in reversed(ledger.entries)]
    if history:
        st.markdown("#### Recent actions")
        st.dataframe(history, use_container_width=True)


initialize_state()

st.title("Eco Action Verifier")
st.subheader("Snap a photo of your environmental action and earn credits.")

classifier, load_error = get_classifier()
if classifier is None:
    st.error(f"Photo verification is unavailable: {load_error}")
    st.stop()

session_pipeline = VerificationPipeline(classifier, st.session_state[LEDGER_KEY])

left_column, right_column = st.columns([1.5, 1])
with left_column:
    render_submission_form(session_pipeline)
with right_column:
    render_results(st.session_state[LEDGER_KEY])
