"""Pytest configuration and fixtures for dtl tests."""

import pytest

from dtl import DictLoader, Environment


@pytest.fixture
def env():
    """Create a basic dtl Environment (autoescape on)."""
    return Environment()


@pytest.fixture
def env_noescape():
    """Create a dtl Environment with autoescape disabled."""
    return Environment(autoescape=False)


@pytest.fixture
def env_with_loader():
    """Create a dtl Environment with DictLoader and test templates."""
    loader = DictLoader(
        {
            "base.html": (
                "<html>"
                "<head>{% block head %}<title>{% block title %}Site{% endblock %}</title>{% endblock %}</head>"
                "<body>{% block content %}A{% endblock %}</body>"
                "</html>"
            ),
            "child.html": (
                '{% extends "base.html" %}{% block content %}B{% endblock %}'
            ),
            "grandchild.html": (
                '{% extends "child.html" %}'
                "{% block title %}{{ block.super }} - Page{% endblock %}"
            ),
            "super.html": (
                '{% extends "base.html" %}{% block content %}[{{ block.super }}]{% endblock %}'
            ),
            "partial.html": "<p>{{ greeting|default:'Hello' }}, {{ name }}</p>",
        }
    )
    return Environment(loader=loader)

