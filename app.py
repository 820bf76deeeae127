"""Streamlit front end for the claim intake wizard."""

from __future__ import annotations

import contextvars
import io
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple

import streamlit as st
from PIL import Image

from intake.api.client import ClaimsApiClient
from intake.audit import COLLAPSED_AUDIT_ENTRIES, visible_entries
from intake.connectivity import ConnectivityMonitor, ConnectivityStore
from intake.models.claim import INSURANCE_COMPANIES, ClaimInfo
from intake.models.status import ClaimStatus
from intake.panels import (
    AGENTS,
    PROGRESS_SEGMENTS,
    agent_states,
    cx_messages,
    status_label,
    status_message,
    status_progress,
)
from intake.summary import (
    RPA_STEPS,
    build_summary_document,
    decision_tone,
    gauge_percentage,
    risk_band,
    summary_filename,
    summary_json,
    triage_label,
)
from intake.utils.config import Config
from intake.utils.errors import BackendOfflineError
from intake.utils.logging import setup_logging
from intake.wizard import (
    WIZARD_STEPS,
    FileStatus,
    Toast,
    WizardController,
    WizardSettings,
    WizardState,
)


APP_TITLE = "ClaimFlow - Claim Intake"

TONE_STYLES: Dict[str, Tuple[str, str]] = {
    "success": ("#dcfce7", "#15803d"),
    "warning": ("#fef3c7", "#b45309"),
    "error": ("#fee2e2", "#b91c1c"),
    "info": ("#dbeafe", "#1d4ed8"),
    "muted": ("#f1f5f9", "#475569"),
}

AGENT_STATE_STYLES: Dict[str, Tuple[str, str]] = {
    "idle": ("#f1f5f9", "#64748b"),
    "running": ("#dbeafe", "#1d4ed8"),
    "completed": ("#dcfce7", "#15803d"),
    "escalated": ("#fef3c7", "#b45309"),
}

TOAST_ICONS = {"success": "✅", "error": "❌", "warning": "⚠️", "info": "ℹ️"}

FILE_STATUS_ICONS = {
    FileStatus.PENDING: "⏳",
    FileStatus.UPLOADING: "⬆️",
    FileStatus.DONE: "✅",
    FileStatus.ERROR: "❌",
}

RPA_TICK_SECONDS = 0.8


@st.cache_resource
def get_runtime() -> Tuple[Config, ClaimsApiClient, ConnectivityStore, ConnectivityMonitor]:
    """Process-wide config, backend client and connectivity monitor."""

    config = Config.load()
    setup_logging(
        level=config.logging.level,
        log_format=config.logging.format,
        log_file=config.logging.file or None,
    )
    client = ClaimsApiClient.from_config(config)
    store = ConnectivityStore()
    monitor = ConnectivityMonitor(client.ping_backend, store, interval=config.connectivity.poll_interval)
    monitor.start()
    return config, client, store, monitor


def init_state() -> None:
    st.session_state.setdefault("wizard", WizardState())
    st.session_state.setdefault("toasts", [])
    st.session_state.setdefault("uploader_nonce", 0)
    st.session_state.setdefault("audit_expanded", False)
    st.session_state.setdefault("assistant_visible", True)


def get_controller() -> WizardController:
    _config, client, store, _monitor = get_runtime()
    toasts: List[Toast] = st.session_state.toasts
    return WizardController(
        client=client,
        state=st.session_state.wizard,
        connectivity=store,
        notify=toasts.append,
        settings=WizardSettings.from_config(CONFIG),
    )


def flush_toasts() -> None:
    toasts: List[Toast] = st.session_state.toasts
    for toast in toasts:
        st.toast(toast.message, icon=TOAST_ICONS.get(toast.level))
    toasts.clear()


def make_badge(text: str, tone: str = "muted") -> str:
    bg, fg = TONE_STYLES.get(tone, TONE_STYLES["muted"])
    return (
        f"<span style=\"background:{bg}; color:{fg}; padding:2px 8px; "
        f"border-radius:10px; font-size:0.8rem; font-weight:600\">{text}</span>"
    )


def bytes_to_pil(content: bytes) -> Optional[Image.Image]:
    try:
        image = Image.open(io.BytesIO(content))
        image.load()
        return image
    except Exception:
        return None


def format_currency(value: Any) -> str:
    try:
        return f"₹{float(value):,.2f}"
    except (TypeError, ValueError):
        return str(value)


# --------------------------- PANELS ---------------------------


def render_backend_banner() -> None:
    """Offline banner, refreshed on the connectivity polling interval."""

    _config, client, store, monitor = get_runtime()
    if store.online:
        return
    msg_col, retry_col = st.columns([5, 1])
    with msg_col:
        st.error(
            f"{BackendOfflineError.offline(client.base_url).user_message} "
            "Actions are disabled until it responds."
        )
    with retry_col:
        if st.button("Retry", key="retry_backend", use_container_width=True):
            if monitor.check_now():
                st.session_state.toasts.append(Toast("Backend is back online", "success"))
            st.rerun()


def render_step_indicator(current_step: int) -> None:
    segments: List[str] = ["<div class='stepper'>"]
    total = len(WIZARD_STEPS)
    for idx, title in enumerate(WIZARD_STEPS, start=1):
        state = "complete" if idx < current_step else "current" if idx == current_step else "upcoming"
        label = "✓" if state == "complete" else str(idx)
        segments.append(
            f"<div class='stepper__item stepper__item--{state}'>"
            f"<div class='stepper__index'>{label}</div>"
            f"<div class='stepper__title'>{title}</div></div>"
        )
        if idx < total:
            segments.append("<div class='stepper__connector'></div>")
    segments.append("</div>")
    st.markdown("".join(segments), unsafe_allow_html=True)


def render_agent_panel(state: WizardState) -> None:
    icons = dict(AGENTS)
    cells = []
    for name, agent_state in agent_states(state.status):
        bg, fg = AGENT_STATE_STYLES[agent_state.value]
        cells.append(
            f"<div class='agent' style='background:{bg}; color:{fg}'>"
            f"<div class='agent__icon'>{icons[name]}</div>"
            f"<div class='agent__name'>{name}</div>"
            f"<div class='agent__state'>{agent_state.value}</div></div>"
        )
    st.markdown(f"<div class='agents'>{''.join(cells)}</div>", unsafe_allow_html=True)


def render_customer_panel(state: WizardState) -> None:
    message = status_message(state.status)
    bg, fg = TONE_STYLES[message.tone]
    progress = status_progress(state.status)
    strip = ""
    if progress is not None:
        bars = []
        for (_key, label, _members), segment in zip(PROGRESS_SEGMENTS, progress):
            bars.append(f"<div class='progress__seg progress__seg--{segment}' title='{label}'></div>")
        strip = f"<div class='progress'>{''.join(bars)}</div>"
    st.markdown(
        f"<div class='status-card' style='background:{bg}; border-color:{fg}'>"
        f"<div class='status-card__title' style='color:{fg}'>{message.title}</div>"
        f"<div class='small'>{message.description}</div>{strip}</div>",
        unsafe_allow_html=True,
    )


def render_issues_panel(state: WizardState) -> None:
    issues = state.issues()
    if not issues.has_issues:
        st.success("All checks passed - Ready to proceed")
        return
    with st.container(border=True):
        st.markdown("**⚠️ Dynamic Engine Output**")
        if issues.missing_fields:
            st.markdown("Missing fields: " + " ".join(make_badge(name, "warning") for name in issues.missing_fields),
                        unsafe_allow_html=True)
        for mismatch in issues.mismatches:
            st.markdown(f"{make_badge(mismatch.label, 'error')} {mismatch.description}", unsafe_allow_html=True)
        for action in issues.requested_actions:
            st.markdown(f"- Requested action: {action}")


def render_assistant(state: WizardState) -> None:
    if not st.session_state.assistant_visible:
        return
    messages = cx_messages(
        state.step,
        state.claim.claim_id if state.claim else None,
        state.upload_results,
        state.check_result,
        state.decision,
    )
    if not messages:
        return
    with st.container(border=True):
        head_col, close_col = st.columns([6, 1])
        head_col.markdown("**💬 ClaimFlow Assistant**")
        if close_col.button("✕", key="dismiss_assistant"):
            st.session_state.assistant_visible = False
            st.rerun()
        for message in messages:
            bg, fg = TONE_STYLES.get(message.tone, TONE_STYLES["muted"])
            st.markdown(
                f"<div class='assistant-msg' style='background:{bg}; color:{fg}'>{message.text}</div>",
                unsafe_allow_html=True,
            )
            if message.action == "upload_documents" and st.button("Upload Documents", key="assistant_upload"):
                state.step = 2
                st.rerun()


def render_audit_trail(state: WizardState) -> None:
    entries = state.audit_trail()
    if not entries:
        return
    st.markdown(f"**🕒 Audit Trail** {make_badge(f'{len(entries)} events')}", unsafe_allow_html=True)
    for entry in visible_entries(entries, st.session_state.audit_expanded):
        details = f" - {entry.details}" if entry.details else ""
        st.caption(f"{entry.time.strftime('%H:%M:%S')} · **{entry.action}**{details}")
    if len(entries) > COLLAPSED_AUDIT_ENTRIES:
        label = "Collapse" if st.session_state.audit_expanded else "Show All"
        if st.button(label, key="toggle_audit"):
            st.session_state.audit_expanded = not st.session_state.audit_expanded
            st.rerun()


def render_sidebar_summary(state: WizardState) -> None:
    label, tone = status_label(state.status)
    claim_text = state.claim.claim_id if state.claim else "Not created"
    st.markdown(
        f"""
        <div class="case-card">
            <div class="case-card__header">
                <div>
                    <div class="case-card__label">Claim ID</div>
                    <div class="case-card__value">{claim_text}</div>
                </div>
                {make_badge(label, tone)}
            </div>
        </div>
        """,
        unsafe_allow_html=True,
    )
    if state.claim:
        info = state.claim.info
        st.caption(f"Customer: {info.customer_name}")
        st.caption(f"Policy: {info.policy_number} · {info.company}")
        if info.claim_amount is not None:
            st.caption(f"Amount: {format_currency(info.claim_amount)}")
    if len(state.queue):
        st.markdown("**Uploaded files**")
        for staged in state.queue:
            st.caption(f"{FILE_STATUS_ICONS[staged.status]} {staged.name} ({staged.kind})")


# --------------------------- MISMATCH DIALOG ---------------------------


@st.dialog("Damage zone mismatch")
def render_mismatch_dialog(controller: WizardController) -> None:
    state = controller.state
    st.warning("The damage detected in your photo doesn't match your description.")
    for mismatch in state.mismatches:
        st.markdown(f"- {mismatch.description}")
    st.markdown("How would you like to proceed?")
    if st.button("📷 Upload a new photo", use_container_width=True):
        controller.resolve_mismatch("upload_new")
        st.rerun()
    if st.button("✅ Confirm detected damage", use_container_width=True):
        controller.resolve_mismatch("confirm_detected")
        st.rerun()
    if st.button("🧑‍💼 Request human review", use_container_width=True):
        controller.resolve_mismatch("request_review")
        st.rerun()


# --------------------------- STEPS ---------------------------


def render_create_step(controller: WizardController, online: bool) -> None:
    st.subheader("Create Claim")
    with st.form("create_claim"):
        customer_name = st.text_input("Customer name *")
        policy_number = st.text_input("Policy number *")
        company = st.selectbox("Insurance company *", [""] + INSURANCE_COMPANIES)
        claim_amount = st.number_input("Claim amount (₹)", min_value=0.0, step=1000.0, value=None)
        damage_description = st.text_area(
            "Damage description", help="E.g. 'front bumper dent'. Compared with what the photos show."
        )
        submitted = st.form_submit_button("Start Claim", type="primary", disabled=not online)

    if submitted:
        info = ClaimInfo(
            customer_name=customer_name,
            policy_number=policy_number,
            company=company,
            claim_amount=claim_amount,
            damage_description=damage_description or None,
        )
        with st.spinner("Creating claim..."):
            created = controller.create_claim(info)
        if created:
            st.rerun()
        flush_toasts()


def _uploaded_tuples(files) -> List[Tuple[str, bytes, Optional[str]]]:
    return [(f.name, f.getvalue(), getattr(f, "type", None)) for f in files or []]


def render_upload_step(controller: WizardController, online: bool) -> None:
    state = controller.state
    settings = controller.settings
    st.subheader("Upload Files")
    if state.status == ClaimStatus.AWAITING_CORRECT_IMAGE:
        st.info("Upload a photo that shows the damage you described.")

    nonce = st.session_state.uploader_nonce
    img_col, doc_col = st.columns(2)
    with img_col:
        images = st.file_uploader(
            f"Damage photos ({settings.min_images}-{settings.max_images})",
            type=CONFIG.upload.allowed_image_types,
            accept_multiple_files=True,
            key=f"images_{nonce}",
        )
    with doc_col:
        documents = st.file_uploader(
            "Claim documents",
            type=CONFIG.upload.allowed_document_types,
            accept_multiple_files=True,
            key=f"documents_{nonce}",
        )
    if st.button("Add to upload queue", disabled=not (images or documents)):
        added = controller.stage_files(_uploaded_tuples(images), "image")
        added += controller.stage_files(_uploaded_tuples(documents), "document")
        st.session_state.uploader_nonce += 1
        if added:
            st.session_state.toasts.append(Toast(f"Added {added} file(s) to the queue", "info"))
        st.rerun()

    if len(state.queue):
        st.markdown("**Upload queue**")
        for index, staged in enumerate(list(state.queue)):
            preview_col, name_col, status_col, remove_col = st.columns([1, 4, 2, 1])
            with preview_col:
                image = bytes_to_pil(staged.content) if staged.kind == "image" else None
                if image is not None:
                    st.image(image, width=64)
                else:
                    st.markdown("📄")
            with name_col:
                st.markdown(f"**{staged.name}**")
                result = staged.result
                if result and result.detector and result.detector.damage_zone:
                    severity = result.detector.damage_severity or "unknown"
                    st.caption(f"Detected: {result.detector.damage_zone} ({severity})")
                if result and result.extract and result.extract.document_type:
                    st.caption(f"Document: {result.extract.document_type}")
                if staged.error:
                    st.caption(f"❌ {staged.error}")
            with status_col:
                st.markdown(f"{FILE_STATUS_ICONS[staged.status]} {staged.status.value}")
            with remove_col:
                if st.button("🗑", key=f"remove_{index}_{staged.name}", disabled=staged.status == FileStatus.UPLOADING):
                    controller.remove_file(index)
                    st.rerun()

    upload_col, continue_col = st.columns(2)
    with upload_col:
        if st.button("Upload", type="primary", disabled=not online or not state.queue.outstanding(),
                     use_container_width=True):
            with st.spinner("Uploading and analyzing files..."):
                controller.upload_staged()
            st.rerun()
    with continue_col:
        if st.button("Continue", disabled=not state.queue.can_continue, use_container_width=True):
            if controller.continue_from_uploads():
                st.rerun()
            flush_toasts()

    if state.show_mismatch:
        render_mismatch_dialog(controller)


def render_check_step(controller: WizardController, online: bool) -> None:
    state = controller.state
    st.subheader("Check")
    st.markdown("Confirm the backend has everything it needs to evaluate the claim.")
    if st.button("Run check", type="primary", disabled=not online):
        with st.spinner("Checking claim..."):
            controller.run_check()
        st.rerun()

    check = state.check_result
    if check is None:
        return
    if check.needs_info:
        st.warning("Some information is missing. Values entered here are kept for reference only.")
        for name in check.missing:
            value = st.text_input(name.replace("_", " ").title(), value=state.missing_values.get(name, ""),
                                  key=f"missing_{name}")
            controller.fill_missing(name, value)
    else:
        st.success("All required information is present.")

    back_col, next_col = st.columns(2)
    if back_col.button("Back to uploads", use_container_width=True):
        state.step = 2
        st.rerun()
    if next_col.button("Continue to decision", disabled=not state.can_continue_from_check,
                       use_container_width=True):
        if controller.continue_to_decision():
            st.rerun()
        flush_toasts()


def render_risk_gauge(score: float, thresholds) -> None:
    label, tone = risk_band(score, thresholds)
    _bg, fg = TONE_STYLES[tone]
    st.markdown(
        f"Risk score <span style='color:{fg}; font-size:1.6rem; font-weight:700'>{score:g}</span> "
        f"{make_badge(label, tone)}",
        unsafe_allow_html=True,
    )
    st.progress(gauge_percentage(score) / 100.0)
    if thresholds is not None:
        st.caption(
            f"Auto-approve ≤ {thresholds.approve:g} · Review ≤ {thresholds.manual_review:g} · "
            f"SIU ≥ {thresholds.siu_flag:g}"
        )


def render_triage_path(path: List[str]) -> None:
    if not path:
        return
    st.markdown("**Triage Path**")
    columns = st.columns(len(path))
    for column, stage in zip(columns, path):
        column.markdown(f"<div class='triage-step'>✓<br>{triage_label(stage)}</div>", unsafe_allow_html=True)


def render_decision_step(controller: WizardController, online: bool) -> None:
    state = controller.state
    st.subheader("Decision")
    decision = state.decision

    if decision is None:
        if state.needs_confirmation:
            missing = ", ".join(state.check_result.missing) if state.check_result else ""
            st.warning(f"Documents are still missing ({missing}). Get a decision anyway?")
            yes_col, no_col = st.columns(2)
            if yes_col.button("Yes, get decision", type="primary", disabled=not online):
                with st.spinner("Running decision engine..."):
                    controller.run_decision(confirmed=True)
                st.rerun()
            if no_col.button("Go back"):
                state.needs_confirmation = False
                state.step = 3
                st.rerun()
        elif st.button("Get decision", type="primary", disabled=not online):
            with st.spinner("Running decision engine..."):
                controller.run_decision()
            st.rerun()
        return

    tone = decision_tone(decision.decision)
    st.markdown(f"### {make_badge(decision.decision, tone)}", unsafe_allow_html=True)
    if decision.reason:
        st.markdown(decision.reason)

    facts = st.columns(3)
    facts[0].metric("Risk level", decision.risk_level or "n/a")
    facts[1].metric("Damage zone", decision.damage_zone or "n/a")
    facts[2].metric(
        "Approved amount",
        format_currency(decision.approved_amount) if decision.approved_amount is not None else "n/a",
    )
    if decision.risk_score is not None:
        render_risk_gauge(decision.risk_score, decision.thresholds)
    if decision.mismatch_count:
        st.caption(f"Mismatches found: {decision.mismatch_count}")
    render_triage_path(decision.path)

    with st.expander("Raw decision payload"):
        st.json(decision.raw)

    if st.button("Continue to RPA", type="primary"):
        if controller.continue_to_rpa():
            st.rerun()
        flush_toasts()


def run_rpa_with_progress(controller: WizardController) -> None:
    """Run the RPA request while stepping a progress bar through the default automation steps."""

    progress = st.progress(0.0, text="Starting automation...")
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(contextvars.copy_context().run, controller.run_rpa)
        tick = 0
        while not future.done():
            index = min(tick, len(RPA_STEPS) - 1)
            progress.progress((index + 1) / (len(RPA_STEPS) + 1), text=f"Step {index + 1}: {RPA_STEPS[index]}")
            time.sleep(RPA_TICK_SECONDS)
            tick += 1
        future.result()
    progress.progress(1.0, text="Automation finished")


def render_rpa_step(controller: WizardController, online: bool) -> None:
    state = controller.state
    st.subheader("RPA Execution")
    result = state.rpa_result

    if result is None:
        st.markdown("Run the robotic process automation workflow to record the claim in our systems.")
        if st.button("Run RPA", type="primary", disabled=not online):
            run_rpa_with_progress(controller)
            st.rerun()
        return

    st.markdown(make_badge(result.status, "error" if result.status.lower() in ("failed", "error") else "success"),
                unsafe_allow_html=True)
    for step in result.steps:
        icon = "❌" if step.failed else "✅"
        line = f"{icon} **Step {step.index}** {step.description}"
        if step.error:
            line += f" - {step.error}"
        st.markdown(line)
    if result.message:
        st.success(result.message)

    if st.button("Complete Workflow", type="primary"):
        controller.complete_rpa()
        st.rerun()


def render_summary(controller: WizardController) -> None:
    state = controller.state
    claim = state.claim
    st.markdown("## ✅ Claim Processing Complete")
    st.markdown(make_badge(f"Claim ID: {claim.claim_id}", "info"), unsafe_allow_html=True)
    render_customer_panel(state)

    details_col, files_col = st.columns(2)
    with details_col, st.container(border=True):
        st.markdown("**Claim Details**")
        st.caption(f"Company: {claim.info.company}")
        st.caption(f"Policy: {claim.info.policy_number}")
        if claim.info.claim_amount is not None:
            st.caption(f"Amount: {format_currency(claim.info.claim_amount)}")
    with files_col, st.container(border=True):
        st.markdown("**Files Uploaded**")
        st.metric("files processed", len(state.upload_results))

    decision_col, rpa_col = st.columns(2)
    if state.decision:
        with decision_col, st.container(border=True):
            st.markdown("**Decision**")
            st.markdown(make_badge(state.decision.decision, decision_tone(state.decision.decision)),
                        unsafe_allow_html=True)
            if state.decision.risk_level:
                st.caption(f"Risk level: {state.decision.risk_level}")
            if state.decision.damage_zone:
                st.caption(f"Damage zone: {state.decision.damage_zone}")
            st.caption(state.decision.reason)
    if state.rpa_result:
        with rpa_col, st.container(border=True):
            st.markdown(f"**RPA Workflow** {make_badge(state.rpa_result.status, 'success')}",
                        unsafe_allow_html=True)
            for step in state.rpa_result.steps:
                st.caption(f"✅ {step.description}")

    document = build_summary_document(claim, state.upload_results, state.decision, state.rpa_result)
    download_col, new_col = st.columns(2)
    download_col.download_button(
        "Download Summary",
        data=summary_json(document),
        file_name=summary_filename(claim.claim_id),
        mime="application/json",
        use_container_width=True,
    )
    if new_col.button("Start New Claim", type="primary", use_container_width=True):
        controller.start_new_claim()
        for key in list(st.session_state.keys()):
            del st.session_state[key]
        st.rerun()


STEP_RENDERERS = {
    1: render_create_step,
    2: render_upload_step,
    3: render_check_step,
    4: render_decision_step,
    5: render_rpa_step,
}


# --------------------------- PAGE ---------------------------

st.set_page_config(page_title=APP_TITLE, layout="wide")
CONFIG, _CLIENT, STORE, _MONITOR = get_runtime()
init_state()

st.markdown(
    """
    <style>
    .small { font-size: 0.85rem; color:#58606b; }

    .stepper {
        display: flex;
        align-items: center;
        gap: 0.5rem;
        padding: 0.75rem 1rem;
        background: linear-gradient(90deg, rgba(37,99,235,0.08), rgba(17,24,39,0.06));
        border-radius: 16px;
        margin-bottom: 1rem;
    }
    .stepper__item { display: flex; gap: 0.5rem; align-items: center; }
    .stepper__index {
        width: 32px; height: 32px; border-radius: 50%;
        display: flex; align-items: center; justify-content: center;
        font-weight: 700; background: #e2e8f0; color: #475569;
    }
    .stepper__item--complete .stepper__index { background: #16a34a; color: white; }
    .stepper__item--current .stepper__index { background: #2563eb; color: white; }
    .stepper__title { font-size: 0.85rem; font-weight: 600; }
    .stepper__connector { flex: 1; height: 2px; background: #cbd5e1; }

    .agents { display: flex; gap: 0.5rem; margin-bottom: 0.75rem; }
    .agent { flex: 1; border-radius: 12px; padding: 0.5rem; text-align: center; }
    .agent__icon { font-size: 1.2rem; }
    .agent__name { font-weight: 600; font-size: 0.85rem; }
    .agent__state { font-size: 0.75rem; text-transform: capitalize; }

    .status-card { border-left: 4px solid; border-radius: 10px; padding: 0.75rem 1rem; margin-bottom: 0.75rem; }
    .status-card__title { font-weight: 700; }
    .progress { display: flex; gap: 4px; margin-top: 0.5rem; }
    .progress__seg { flex: 1; height: 6px; border-radius: 3px; background: #e2e8f0; }
    .progress__seg--done { background: #16a34a; }
    .progress__seg--current { background: #2563eb; }

    .assistant-msg { border-radius: 8px; padding: 0.5rem 0.75rem; margin-bottom: 0.4rem; font-size: 0.9rem; }
    .triage-step { text-align: center; font-size: 0.8rem; color: #15803d; }

    .case-card { border: 1px solid #e5e7eb; border-radius: 12px; padding: 0.75rem 1rem; margin-bottom: 0.5rem; }
    .case-card__header { display: flex; justify-content: space-between; align-items: center; gap: 0.5rem; }
    .case-card__label { font-size: 0.75rem; color: #64748b; }
    .case-card__value { font-weight: 600; word-break: break-all; }
    </style>
    """,
    unsafe_allow_html=True,
)

controller = get_controller()
wizard: WizardState = controller.state

# --------------------------- SIDEBAR ---------------------------

with st.sidebar:
    st.header("Claim Summary")
    render_sidebar_summary(wizard)
    st.divider()
    render_audit_trail(wizard)

# --------------------------- MAIN ---------------------------

st.title(APP_TITLE)
st.fragment(run_every=CONFIG.connectivity.poll_interval)(render_backend_banner)()
flush_toasts()

if wizard.show_summary and wizard.claim is not None:
    render_summary(controller)
else:
    render_step_indicator(wizard.step)
    main_col, side_col = st.columns([2, 1])
    with main_col:
        STEP_RENDERERS[wizard.step](controller, STORE.online)
        if wizard.step in (2, 3, 4) and wizard.claim is not None:
            render_issues_panel(wizard)
    with side_col:
        render_agent_panel(wizard)
        render_customer_panel(wizard)
        render_assistant(wizard)
