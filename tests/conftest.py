"""
Shared fixtures for the chatbot tests.

Fixtures:
    - kb_data: raw knowledge base document
    - kb: KnowledgeBase built from kb_data
    - fake_generator: stand-in for the Gemini generator
    - client: Flask test client wired to kb and fake_generator
"""

import sys
from pathlib import Path
from typing import Any, Dict
from unittest.mock import Mock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from app import create_app  # noqa: E402
from config import Settings  # noqa: E402
from knowledge import KnowledgeBase  # noqa: E402


@pytest.fixture
def kb_data() -> Dict[str, Any]:
    return {
        "brand": {"name": "CelesteIQ", "tagline": "Microsoft + AI"},
        "contact": {"email": "support@celesteiq.com"},
        "packages": [
            {
                "id": "sec1",
                "name": "Security Audit",
                "headline": "Find the gaps",
                "summary": "A full review of your tenant security.",
                "deliverables": ["Report", "Action plan"],
                "price_hint": "on request",
            },
            {
                "id": "train1",
                "name": "Copilot Training",
                "headline": "Get productive with AI",
                "summary": "Hands-on workshops.",
                "deliverables": ["Two workshops"],
            },
            {
                "id": "gov1",
                "name": "Governance",
                "headline": "Keep data in order",
                "summary": "Retention and labelling policies.",
            },
        ],
        "faq": [
            {"q": "What does the security audit include?", "a": "Licences, security and governance."},
            {"q": "How long does training take?", "a": "One week."},
            {"q": "Do you work with small companies?", "a": "Yes."},
            {"q": "Is the training remote?", "a": "Mostly."},
            {"q": "Can training be delivered on site?", "a": "On request."},
            {"q": "Which training formats exist?", "a": "Workshops and webinars."},
        ],
        "routing": {
            "packageSuggestionRules": [
                {"triggers": ["security audit", "Pentest"], "targetPackageId": "sec1"},
                {"triggers": ["training", "copilot"], "targetPackageId": "train1"},
                {"triggers": ["workshop"], "targetPackageId": "train1"},
            ]
        },
    }


@pytest.fixture
def kb(kb_data) -> KnowledgeBase:
    return KnowledgeBase.from_dict(kb_data)


@pytest.fixture
def fake_generator() -> Mock:
    generator = Mock()
    generator.generate.return_value = "Hola, ¿en qué puedo ayudarle?"
    return generator


@pytest.fixture
def settings() -> Settings:
    return Settings(google_api_key="test_key", locales=("es", "en"), default_locale="es")


@pytest.fixture
def client(settings, kb, fake_generator):
    app = create_app(settings, knowledge_base=kb, generator=fake_generator)
    app.config["TESTING"] = True
    return app.test_client()
