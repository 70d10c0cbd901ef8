"""Phase catalog: the canonical breakdown of work for each area type.

Each area maps to an ordered sequence of phases (story templates). The
expander takes phases from the front of the sequence, so the order here is
the order in which work is planned. Add new areas or phases here only;
classification and expansion read the tables through the accessors below.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

from .models import FALLBACK_AREA, Phase

SUBTASK_ACTIONS: Tuple[str, ...] = (
    "Research",
    "Design",
    "Implement",
    "Test",
    "Document",
    "Review",
    "Deploy",
)

AREA_DISPLAY_NAMES: Mapping[str, str] = MappingProxyType({
    "frontend": "Frontend Development",
    "backend": "Backend Development",
    "auth": "Authentication & Security",
    "testing": "Testing & Quality Assurance",
    "deployment": "Deployment & DevOps",
    "data": "Data Management",
    "mobile": "Mobile Development",
    "documentation": "Documentation",
    "implementation": "Implementation",
})

AREA_WORK_DESCRIPTIONS: Mapping[str, str] = MappingProxyType({
    "frontend": "Build the user-facing screens, components and client-side behaviour.",
    "backend": "Build the server-side services, endpoints and business rules behind the product.",
    "auth": "Protect the product with sign-in, session handling and access control.",
    "testing": "Establish automated and manual checks that keep the product releasable.",
    "deployment": "Automate builds and releases and run the product reliably in production.",
    "data": "Model, move and safeguard the information the product depends on.",
    "mobile": "Deliver the product on phones and tablets with a native feel.",
    "documentation": "Explain the product to the people who build, run and use it.",
    "implementation": "Turn the goal into working, reviewed and tested functionality.",
})

AREA_PHASES: Mapping[str, Tuple[Phase, ...]] = MappingProxyType({
    "frontend": (
        Phase("Design UI", "wireframes and mockups"),
        Phase("Set up frontend", "project scaffolding and tooling"),
        Phase("Build components", "reusable UI components"),
        Phase("Implement pages", "key screens and navigation"),
        Phase("Manage state", "client-side state and data fetching"),
        Phase("Handle input", "form validation and user feedback"),
        Phase("Polish experience", "responsive layout and accessibility"),
        Phase("Optimize frontend", "bundle size and rendering performance"),
    ),
    "backend": (
        Phase("Design API", "endpoint contracts and data models"),
        Phase("Set up database", "schema and connection handling"),
        Phase("Implement endpoints", "CRUD operations"),
        Phase("Add business logic", "domain rules and workflows"),
        Phase("Handle errors", "validation and error responses"),
        Phase("Document API", "API reference and usage examples"),
        Phase("Add caching", "response and query caching"),
        Phase("Add rate limiting", "request throttling and quotas"),
    ),
    "auth": (
        Phase("Design authentication", "sign-in flow and token strategy"),
        Phase("Implement registration", "account creation and verification"),
        Phase("Implement login", "credential checks and password hashing"),
        Phase("Manage sessions", "session lifetime and token refresh"),
        Phase("Add authorization", "roles and permissions"),
        Phase("Protect resources", "guarded routes and endpoints"),
        Phase("Harden security", "audit logging and threat mitigation"),
        Phase("Support single sign-on", "third-party identity providers"),
    ),
    "testing": (
        Phase("Plan testing", "test strategy and coverage goals"),
        Phase("Set up test tooling", "test runners and fixtures"),
        Phase("Write unit tests", "core functions and modules"),
        Phase("Write integration tests", "service boundaries and contracts"),
        Phase("Automate end-to-end tests", "critical user journeys"),
        Phase("Run QA", "manual test cases and exploratory sessions"),
        Phase("Track quality", "coverage reporting and defect triage"),
        Phase("Test performance", "load and stress scenarios"),
    ),
    "deployment": (
        Phase("Set up CI", "build and test automation"),
        Phase("Containerize services", "container images and build configuration"),
        Phase("Provision infrastructure", "cloud resources and networking"),
        Phase("Configure environments", "environment variables and secrets"),
        Phase("Automate releases", "release pipeline and versioning"),
        Phase("Add monitoring", "metrics, logs and alerts"),
        Phase("Deploy to production", "rollout and smoke checks"),
        Phase("Plan recovery", "backups and rollback procedures"),
    ),
    "data": (
        Phase("Model data", "entities and relationships"),
        Phase("Design storage", "storage schema and indexes"),
        Phase("Migrate data", "migration scripts and data mapping"),
        Phase("Build import and export", "file formats and bulk transfer"),
        Phase("Validate data", "integrity rules and cleansing"),
        Phase("Synchronize data", "sync jobs and conflict resolution"),
        Phase("Report on data", "analytics queries and dashboards"),
        Phase("Govern data", "retention and privacy controls"),
    ),
    "mobile": (
        Phase("Set up mobile app", "mobile framework and project setup"),
        Phase("Design mobile UI", "mobile screen layouts"),
        Phase("Implement navigation", "app navigation structure"),
        Phase("Build mobile features", "core mobile workflows"),
        Phase("Integrate device features", "camera, location and notifications"),
        Phase("Support offline use", "local storage and background sync"),
        Phase("Prepare store release", "app store listings and signing"),
        Phase("Optimize mobile", "startup time and battery usage"),
    ),
    "documentation": (
        Phase("Plan documentation", "audience and documentation structure"),
        Phase("Write technical docs", "architecture overview"),
        Phase("Write setup guide", "developer environment setup"),
        Phase("Write user guide", "end-user instructions"),
        Phase("Create tutorials", "step-by-step walkthroughs"),
        Phase("Document troubleshooting", "common problems and fixes"),
        Phase("Publish documentation", "documentation site and hosting"),
        Phase("Maintain documentation", "review cadence and ownership"),
    ),
    "implementation": (
        Phase("Analyze requirements", "requirements and technical specification"),
        Phase("Set up project", "project structure and tooling"),
        Phase("Implement core", "core functionality"),
        Phase("Handle edge cases", "error handling and edge cases"),
        Phase("Verify implementation", "automated tests"),
        Phase("Review implementation", "code review feedback"),
        Phase("Prepare release", "release notes and packaging"),
        Phase("Gather feedback", "stakeholder feedback and follow-ups"),
    ),
})


def get_phases(area_type: str) -> Tuple[Phase, ...]:
    """Return the ordered phases for an area, falling back to implementation."""
    return AREA_PHASES.get(area_type, AREA_PHASES[FALLBACK_AREA])


def display_name(area_type: str) -> str:
    return AREA_DISPLAY_NAMES.get(area_type, AREA_DISPLAY_NAMES[FALLBACK_AREA])


def work_description(area_type: str) -> str:
    return AREA_WORK_DESCRIPTIONS.get(area_type, AREA_WORK_DESCRIPTIONS[FALLBACK_AREA])


def describe_catalog() -> dict:
    """Serializable view of the catalog for discovery tools."""
    return {
        "subtask_actions": list(SUBTASK_ACTIONS),
        "areas": [
            {
                "type": area_type,
                "name": AREA_DISPLAY_NAMES[area_type],
                "description": AREA_WORK_DESCRIPTIONS[area_type],
                "phases": [
                    {"action": phase.action, "focus": phase.focus}
                    for phase in phases
                ],
            }
            for area_type, phases in AREA_PHASES.items()
        ],
    }
