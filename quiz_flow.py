"""Step-by-step homeowner quiz, independent of whatever renders it.

A ``QuizSession`` walks a visitor through six steps::

    0  homeowner gate (yes / no)
    1  name
    2  email
    3  phone
    4  zip code  -> submits the lead
    5  thank-you screen (terminal)

Transitions are looked up in ``TRANSITIONS`` keyed by ``(step, input_valid)``.
Front ends call ``answer_homeowner``/``advance`` and render the returned
``StepOutcome``; they never touch session state directly.
"""
from __future__ import annotations

import json
import logging
import os
import random
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import settings
from analytics import track_event
from errors import MissingFieldError, QuizStateError
from lead_format import valid_email, valid_name, valid_phone, valid_zip
from lead_submitter import SubmissionResult, failure_message, submit_lead

logger = logging.getLogger("quiz_flow")

PROGRESS = (0, 20, 40, 60, 80, 100)

FINAL_DATA_STEP = 4
TERMINAL_STEP   = 5

TRANSITION_DELAY    = 0.3
ERROR_FLASH_SECONDS = 2.0
HOMEOWNER_ALERT     = "We primarily work with homeowners."

FIELDS = {1: "name", 2: "email", 3: "phone", 4: "zip"}
CHECKS: Dict[int, Callable[[str], bool]] = {
    1: valid_name,
    2: valid_email,
    3: valid_phone,
    4: valid_zip,
}
PLACEHOLDERS = {
    1: "Your full name",
    2: "you@example.com",
    3: "(555) 555-5555",
    4: "5-digit zip code",
}
FIELD_ERRORS = {
    1: "Please enter your name (at least 2 characters).",
    2: "Please enter a valid email address.",
    3: "Please enter a valid phone number.",
    4: "Please enter a 5-digit zip code.",
}
DEFAULT_TITLES = {
    0: "Do you own your home?",
    1: "What's your name?",
    2: "What's your email?",
    3: "What's the best number to reach you?",
    4: "What's your zip code?",
    5: "You're all set!",
}
PERSONALIZED_TITLES = {
    2: "Hey {name}! 👋",
    3: "Almost there, {name}! 🚀",
    4: "Last step, {name}! 🎉",
}

# (current step, input valid) -> next step
TRANSITIONS = {
    (0, True): 1,
    (0, False): 0,
    (1, True): 2,
    (1, False): 1,
    (2, True): 3,
    (2, False): 2,
    (3, True): 4,
    (3, False): 3,
    (4, True): 5,
    (4, False): 4,
}

VARIANTS = ("A", "B")


@dataclass
class UserRecord:
    homeowner: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    zip: Optional[str] = None


@dataclass
class StepOutcome:
    step: int
    advanced: bool = False
    delay: float = 0.0
    error: Optional[str] = None
    focus: bool = False
    flash_seconds: float = 0.0
    placeholder: Optional[str] = None
    alert: Optional[str] = None
    busy: bool = False
    submission: Optional[SubmissionResult] = None


class VariantStore:
    """Persists the visitor's A/B bucket across runs, like browser local storage."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.VARIANT_STORE_PATH)

    def load(self) -> Optional[str]:
        try:
            if not self.path.exists():
                return None
            variant = json.loads(self.path.read_text()).get("variant")
        except Exception:
            logger.debug("Unable to read variant store %s", self.path, exc_info=True)
            return None
        return variant if variant in VARIANTS else None

    def get_or_assign(self, rng: Optional[random.Random] = None) -> str:
        variant = self.load()
        if variant:
            return variant
        variant = (rng or random).choice(VARIANTS)
        try:
            os.makedirs(self.path.parent, exist_ok=True)
            self.path.write_text(json.dumps({"variant": variant}))
        except Exception:
            logger.debug("Unable to persist variant to %s", self.path, exc_info=True)
        track_event("ab_variant_assigned", variant=variant)
        return variant


class QuizSession:
    def __init__(
        self,
        *,
        variant: str,
        page_url: str = settings.PAGE_URL,
        submitter: Callable[..., SubmissionResult] = submit_lead,
        sticky: bool = False,
        on_conversion: Optional[Callable[["QuizSession"], Any]] = None,
    ):
        self.variant = variant
        self.page_url = page_url
        self.sticky = sticky
        self.record = UserRecord()
        self.current_step = 0
        self.titles: Dict[int, str] = dict(DEFAULT_TITLES)

        self.halted = False
        self.completed = False
        self.converted = False
        self.submitting = False
        self.control_enabled = True
        self.scroll_locked = False
        self.nav_visible = True

        self._submitter = submitter
        self._on_conversion = on_conversion
        self._lock = threading.Lock()

    # ── read-only views ────────────────────────────────────────────────
    @property
    def progress(self) -> int:
        return PROGRESS[self.current_step]

    @property
    def title(self) -> str:
        return self.titles[self.current_step]

    @property
    def placeholder(self) -> Optional[str]:
        return PLACEHOLDERS.get(self.current_step)

    # ── transitions ───────────────────────────────────────────────────
    def _check_open(self) -> None:
        if self.halted:
            raise QuizStateError("quiz was ended at the homeowner question")
        if self.completed:
            raise QuizStateError("quiz already completed")

    def answer_homeowner(self, answer: str) -> StepOutcome:
        self._check_open()
        if self.current_step != 0:
            raise QuizStateError(f"homeowner question answered at step {self.current_step}")
        answer = (answer or "").strip().lower()
        if answer not in ("yes", "no"):
            raise ValueError(f"unexpected homeowner answer {answer!r}")

        if answer == "no":
            self.halted = True
            logger.info("Visitor is not a homeowner; quiz halted")
            return StepOutcome(step=0, alert=HOMEOWNER_ALERT)

        self.record.homeowner = answer
        if self.sticky:
            self.scroll_locked = True
        self.current_step = TRANSITIONS[(0, True)]
        return StepOutcome(step=self.current_step, advanced=True, delay=TRANSITION_DELAY)

    def cta_clicked(self) -> Optional[StepOutcome]:
        """A page call-to-action outside the quiz starts it with a "yes"."""
        if self.current_step == 0 and not (self.halted or self.completed):
            return self.answer_homeowner("yes")
        return None

    def advance(self, value: str) -> StepOutcome:
        self._check_open()
        step = self.current_step
        if step not in FIELDS:
            raise QuizStateError(f"no input expected at step {step}")
        if step == FINAL_DATA_STEP and self.submitting:
            return StepOutcome(step=step, busy=True)

        value = (value or "").strip()
        valid = bool(value) and CHECKS[step](value)
        if not valid:
            return StepOutcome(
                step=TRANSITIONS[(step, False)],
                error=FIELD_ERRORS[step],
                focus=True,
                flash_seconds=ERROR_FLASH_SECONDS,
                placeholder=PLACEHOLDERS[step],
            )

        setattr(self.record, FIELDS[step], value)
        if step == 1:
            self._personalize(value)
        if step == FINAL_DATA_STEP:
            return self.submit()

        self.current_step = TRANSITIONS[(step, True)]
        return StepOutcome(step=self.current_step, advanced=True)

    def _personalize(self, name: str) -> None:
        for step, template in PERSONALIZED_TITLES.items():
            self.titles[step] = template.format(name=name)

    def submit(self) -> StepOutcome:
        with self._lock:
            self._check_open()
            if self.submitting:
                logger.info("Submission already in flight; ignoring duplicate trigger")
                return StepOutcome(step=self.current_step, busy=True)
            self.submitting = True
            self.control_enabled = False

        result: Optional[SubmissionResult] = None
        error: Optional[str] = None
        try:
            result = self._submitter(self.record, variant=self.variant, page_url=self.page_url)
        except MissingFieldError as exc:
            logger.warning("Lead not submitted: %s", exc)
            error = str(exc)
        except Exception:
            logger.exception("Lead submission crashed")
            error = failure_message()

        with self._lock:
            self.submitting = False
            if result is not None and result.success:
                self._enter_terminal()
            else:
                self.control_enabled = True

        if result is not None and result.success:
            self._fire_conversion()
            return StepOutcome(step=self.current_step, advanced=True, submission=result)
        return StepOutcome(
            step=self.current_step,
            error=error or (result.message if result else failure_message()),
            submission=result,
        )

    def _enter_terminal(self) -> None:
        self.current_step = TRANSITIONS[(FINAL_DATA_STEP, True)]
        self.completed = True
        self.nav_visible = False
        self.scroll_locked = False

    def _fire_conversion(self) -> None:
        if self.converted:
            return
        self.converted = True
        if self._on_conversion is not None:
            self._on_conversion(self)
        else:
            track_event("lead_conversion", variant=self.variant, page_url=self.page_url)
