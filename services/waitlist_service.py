"""Waitlist form state and submission logic"""
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from config.settings import RESET_DELAY_SECONDS, WAITLIST_TABLE
from services.record_store import RecordStore, StoreError, describe_store_error
from utils.logger import log_debug, log_error, log_info, log_warning, mask_email
from utils.validation import ValidationError, validate_waitlist_fields

NETWORK_ERROR_MESSAGE = 'Network error. Please check your connection.'

FAILURE_VALIDATION = 'validation'
FAILURE_DUPLICATE = 'duplicate'
FAILURE_MISSING_COLLECTION = 'missing_collection'
FAILURE_STORE = 'store'
FAILURE_TRANSPORT = 'transport'

FORM_FIELDS = ('name', 'email')

SUBMIT_LABELS = {
    'idle': 'Get Early Access',
    'failed': 'Get Early Access',
    'submitting': 'Signing Up...',
    'submitted': 'Added to Waitlist!',
}


class Phase(str, Enum):
    IDLE = 'idle'
    SUBMITTING = 'submitting'
    SUBMITTED = 'submitted'
    FAILED = 'failed'


class FormState:
    """Field values and lifecycle phase of one visitor's form"""

    def __init__(self, name: str = '', email: str = '', phase: Phase = Phase.IDLE,
                 error_message: Optional[str] = None, failure: Optional[str] = None):
        self.name = name
        self.email = email
        self.phase = phase
        self.error_message = error_message
        # Kind of the last failure, set only while failed
        self.failure = failure

    def copy(self) -> 'FormState':
        return FormState(self.name, self.email, self.phase, self.error_message, self.failure)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'email': self.email,
            'phase': self.phase.value,
            'error': self.error_message,
            'failure': self.failure,
        }

    def __repr__(self):
        return f"FormState(phase={self.phase.value!r}, error={self.error_message!r})"


class WaitlistRecord:
    """Row sent to the waitlist table; built fresh for every submit"""

    def __init__(self, name: str, email: str, created_at: datetime):
        self.name = name
        self.email = email
        self.created_at = created_at

    def to_row(self) -> Dict[str, str]:
        return {
            'name': self.name,
            'email': self.email,
            'created_at': self.created_at.isoformat(),
        }


class TimerScheduler:
    """Runs a callback once after a delay on a daemon timer thread"""

    def schedule(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def render_view(state: Optional[FormState] = None) -> Dict[str, Any]:
    """Render model of a form state; a blank idle form when no state is given"""
    state = state or FormState()
    busy = state.phase == Phase.SUBMITTING
    data = state.to_dict()
    data.update({
        'inputs_disabled': busy,
        'submit_disabled': busy,
        'submit_label': SUBMIT_LABELS[state.phase.value],
    })
    return data


def _store_failure(error: StoreError) -> str:
    if error.is_duplicate:
        return FAILURE_DUPLICATE
    if error.is_missing_collection:
        return FAILURE_MISSING_COLLECTION
    return FAILURE_STORE


class WaitlistFormController:
    """
    Owns the form of a single visitor.

    Phases move idle -> submitting -> submitted -> idle on success, and to
    failed on a validation, store or transport error. A failed form stays
    editable and keeps its values; editing clears the error. The success
    phase reverts to an empty idle form after `reset_delay` seconds.

    Only one submission can be in flight: the phase check and the move to
    submitting happen under the same lock, so a repeated submit is a no-op.
    """

    def __init__(self, store: Optional[RecordStore] = None, scheduler: Optional[TimerScheduler] = None,
                 clock: Callable[[], datetime] = _utcnow, collection: str = WAITLIST_TABLE,
                 reset_delay: float = RESET_DELAY_SECONDS):
        self.store = store or RecordStore()
        self.scheduler = scheduler or TimerScheduler()
        self.clock = clock
        self.collection = collection
        self.reset_delay = reset_delay

        self._state = FormState()
        self._lock = threading.RLock()
        self._reset_task = None
        self._closed = False

    @property
    def state(self) -> FormState:
        """Snapshot of the current form state"""
        with self._lock:
            return self._state.copy()

    @property
    def phase(self) -> Phase:
        with self._lock:
            return self._state.phase

    def update_field(self, field: str, value: str) -> bool:
        """
        Set one field. Returns False when the edit is rejected because a
        submission is in flight. Unknown fields raise ValueError.
        """
        if field not in FORM_FIELDS:
            raise ValueError(f"Unknown form field '{field}'")

        with self._lock:
            if self._state.phase == Phase.SUBMITTING:
                log_debug(f"Rejected edit of '{field}' during submission")
                return False

            setattr(self._state, field, '' if value is None else str(value))
            if self._state.phase == Phase.FAILED:
                self._state.phase = Phase.IDLE
            self._state.error_message = None
            self._state.failure = None
            return True

    def submit(self) -> FormState:
        """
        Validate and insert the current values. Always returns the resulting
        state; errors end up in `error_message`, never raised.
        """
        with self._lock:
            if self._state.phase in (Phase.SUBMITTING, Phase.SUBMITTED):
                log_debug(f"Ignored submit while {self._state.phase.value}")
                return self._state.copy()

            try:
                fields = validate_waitlist_fields(self._state.name, self._state.email)
            except ValidationError as e:
                self._fail(e.user_message, FAILURE_VALIDATION)
                return self._state.copy()

            record = WaitlistRecord(fields['name'], fields['email'], self.clock())
            self._state.phase = Phase.SUBMITTING
            self._state.error_message = None
            self._state.failure = None

        # The store call runs outside the lock so readers can observe the
        # submitting phase; the phase itself blocks edits and resubmits.
        try:
            self.store.insert(self.collection, record.to_row())
        except StoreError as e:
            log_warning(f"Waitlist insert rejected for {mask_email(record.email)}: {e}")
            with self._lock:
                self._fail(describe_store_error(e), _store_failure(e))
                return self._state.copy()
        except Exception as e:
            # Anything raised before a structured store error counts as transport
            log_error(f"Waitlist insert failed for {mask_email(record.email)}", error=e)
            with self._lock:
                self._fail(NETWORK_ERROR_MESSAGE, FAILURE_TRANSPORT)
                return self._state.copy()

        log_info(f"Added {mask_email(record.email)} to {self.collection}")
        with self._lock:
            self._state.phase = Phase.SUBMITTED
            self._state.error_message = None
            self._state.failure = None
            if not self._closed:
                self._reset_task = self.scheduler.schedule(self.reset_delay, self._auto_reset)
            return self._state.copy()

    def view(self) -> Dict[str, Any]:
        """Render model for the form page and the JSON API"""
        with self._lock:
            return render_view(self._state)

    def close(self):
        """Tear the form down, cancelling a pending auto-reset"""
        with self._lock:
            self._closed = True
            if self._reset_task is not None:
                self._reset_task.cancel()
                self._reset_task = None

    @property
    def closed(self) -> bool:
        return self._closed

    def _fail(self, message: str, failure: str):
        self._state.phase = Phase.FAILED
        self._state.error_message = message
        self._state.failure = failure

    def _auto_reset(self):
        with self._lock:
            self._reset_task = None
            self._state = FormState()
        log_debug("Waitlist form reset after successful submission")
