"""
Pytest configuration and fixtures for training funds tests.
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from training_funds.config import WorkflowConfig, load_config
from training_funds.exceptions import NotifierUnavailable
from training_funds.fund_request.request_store import FundingRequestStore
from training_funds.notifications.dispatcher import NotificationDispatcher
from training_funds.notifications.notifier import OutboundMessage
from training_funds.storage.kv_store import InMemoryKeyValueStore
from training_funds.workflow import FundingRequestService

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

FIXED_NOW = datetime(2025, 3, 15, 14, 30, tzinfo=timezone.utc)

APPROVER = "approver@example.org"
DISBURSER = "treasurer@example.org"
BASE_URL = "https://funds.example.org"


class RecordingNotifier:
    """Notifier that keeps sent messages and fails for selected recipients."""

    def __init__(self, fail_for: set[str] | None = None):
        self.sent: list[OutboundMessage] = []
        self.fail_for = fail_for or set()

    def send(self, message: OutboundMessage) -> str:
        if self.fail_for.intersection(message.to):
            raise NotifierUnavailable(f"Mailbox unavailable: {', '.join(message.to)}")
        self.sent.append(message)
        return f"msg-{len(self.sent)}"

    def sent_to(self, address: str) -> list[OutboundMessage]:
        return [m for m in self.sent if address in m.to]


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write a minimal workflow configuration."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    config_file = config_dir / "training_funds.yaml"
    config_file.write_text(f"""
base_url: {BASE_URL}
allowed_domain: example.org
email:
  from: "Training Funds Request <noreply@example.org>"
  approvers:
    - {APPROVER}
  disbursers:
    - {DISBURSER}
users:
  - email: {APPROVER}
    name: "Test Approver"
    roles: [approver]
  - email: {DISBURSER}
    name: "Test Treasurer"
    roles: [disburser]
""")
    return config_file


@pytest.fixture
def workflow_config(config_file: Path) -> WorkflowConfig:
    """Load the test configuration."""
    return load_config(config_file)


@pytest.fixture
def clock():
    """Clock fixed at 2025-03-15 14:30 UTC."""
    return lambda: FIXED_NOW


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def request_store(kv_store: InMemoryKeyValueStore) -> FundingRequestStore:
    return FundingRequestStore(kv_store)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(
    request_store: FundingRequestStore,
    notifier: RecordingNotifier,
    workflow_config: WorkflowConfig,
    clock,
) -> FundingRequestService:
    """Workflow service over an in-memory store and a recording notifier."""
    dispatcher = NotificationDispatcher(notifier, workflow_config)
    return FundingRequestService(request_store, dispatcher, workflow_config, clock=clock)


@pytest.fixture
def sample_form_data() -> dict:
    """Return a sample training funds request form."""
    return {
        "requester_name": "Alice Example",
        "department_position": "Engineering / Firefighter",
        "email": "alice@example.org",
        "phone": "555-0100",
        "training_description": "Hazmat Technician Course",
        "training_dates": "April 7-11, 2025",
        "training_location": "Sacramento, CA",
        "registration_fee": "120",
        "pay_ahead_registration": True,
        "hotel_cost": "300",
        "pay_ahead_hotel": False,
        "flight_cost": "",
        "pay_ahead_flight": False,
        "mileage_needed": True,
        "mileage_miles": "100",
        "mileage_total": "70",
        "meals_needed": False,
        "meals_total": "",
        "dept_vehicle": False,
        "additional_notes": "Early-bird registration closes Friday.",
    }


# Environment setup for tests
@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Keep environment overrides from leaking into config loading."""
    for name in (
        "TRAINING_APPROVER_EMAIL",
        "TRAINING_DISBURSER_EMAIL",
        "TRAINING_FROM_EMAIL",
        "TRAINING_BASE_URL",
        "TRAINING_FUNDS_CONFIG",
        "DATABASE_URL",
        "SMTP_HOST",
        "SMTP_PORT",
        "SMTP_USERNAME",
        "SMTP_PASSWORD",
        "SMTP_USE_TLS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENVIRONMENT", "test")
    yield
