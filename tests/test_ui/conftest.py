"""Shared fixtures for UI tests using pytest-qt."""

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def session_page(qtbot, repo, channel, sample_session, recents):
    from brick_tally.ui.pages.session_page import SessionPage

    page = SessionPage(repo, channel, "testslug0001", recents)
    qtbot.addWidget(page)
    yield page
    page.close_session()
