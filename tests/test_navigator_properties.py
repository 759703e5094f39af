"""
Tests for view navigation.

Checks the single-mounted-view rule, footer visibility, listener detachment
on every transition and the back-button routes.
"""

import asyncio
import tempfile
from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from fake_service import FakeService, make_panel
from phisher_panel.enums import View
from phisher_panel.panel import Event

FOOTER_LISTENERS = 4


def _run(state_dir: str, service: FakeService, scenario, **panel_kwargs):
    async def main():
        async with make_panel(Path(state_dir), service, **panel_kwargs) as panel:
            return await scenario(panel)

    return asyncio.run(main())


def mounted_views(panel) -> list[str]:
    return [element["data-view"] for element in panel.document.select("[data-view]")]


def snapshot(panel) -> tuple:
    doc = panel.document
    return (
        panel.current_view,
        mounted_views(panel),
        doc.is_visible(doc.footer),
    )


class TestSingleViewProperty:
    """Exactly one view is mounted after every transition."""

    @given(route=st.lists(st.sampled_from(list(View)), min_size=1, max_size=6))
    @settings(max_examples=15, deadline=None)
    def test_any_route_leaves_one_view(self, route: list[View]) -> None:
        """
        Property: for any sequence of navigations, the root container holds
        exactly the last view, the footer is visible only on the main view,
        and only the footer and the current view's listeners remain.
        """
        service = FakeService()

        async def scenario(panel):
            states = []
            for view in route:
                await panel.navigate(view)
                doc = panel.document
                scope = panel.navigator.view_scope
                states.append((
                    view,
                    mounted_views(panel),
                    doc.is_visible(doc.footer),
                    doc.listeners.count(),
                    doc.listeners.count(scope),
                ))
            return states

        with tempfile.TemporaryDirectory() as tmpdir:
            states = _run(tmpdir, service, scenario)

        for view, views, footer_visible, total, in_view in states:
            assert views == [view.value]
            assert footer_visible == (view == View.MAIN)
            assert total == in_view + FOOTER_LISTENERS

    def test_settings_round_trip_through_buttons(self) -> None:
        service = FakeService()

        async def scenario(panel):
            doc = panel.document
            steps = [snapshot(panel)]
            first_session = panel.session

            await doc.click("settingsBtn")
            steps.append(snapshot(panel))
            await doc.click(doc.select_one('.setting-item[data-action="whitelist"]'))
            steps.append(snapshot(panel))
            await doc.click("backToSettingsBtn")
            steps.append(snapshot(panel))
            await doc.click(doc.select_one('.setting-item[data-action="blacklist"]'))
            steps.append(snapshot(panel))
            await doc.click("backToSettingsBtn")
            steps.append(snapshot(panel))
            await doc.click("backBtn")
            steps.append(snapshot(panel))
            return steps, first_session, panel.session

        with tempfile.TemporaryDirectory() as tmpdir:
            steps, first_session, last_session = _run(tmpdir, service, scenario)

        assert steps == [
            (View.MAIN, ["main"], True),
            (View.SETTINGS, ["settings"], False),
            (View.WHITELIST, ["whitelist"], False),
            (View.SETTINGS, ["settings"], False),
            (View.BLACKLIST, ["blacklist"], False),
            (View.SETTINGS, ["settings"], False),
            (View.MAIN, ["main"], True),
        ]
        assert first_session.closed
        assert last_session is not first_session

    def test_history_back_reloads(self) -> None:
        service = FakeService()

        async def scenario(panel):
            await panel.analyze("https://example.com/")
            await panel.document.click("historyBtn")
            during = snapshot(panel)
            cached_before = len(panel.session.cache)
            await panel.document.click("backBtn")
            return during, cached_before, snapshot(panel), len(panel.session.cache)

        with tempfile.TemporaryDirectory() as tmpdir:
            during, cached_before, after, cached_after = _run(tmpdir, service, scenario)

        assert during == (View.HISTORY, ["history"], False)
        assert cached_before == 1
        assert after == (View.MAIN, ["main"], True)
        assert cached_after == 0


class TestListenerDetachment:
    """Handlers bound by a previous view never fire."""

    def test_stale_main_view_controls_are_inert(self) -> None:
        service = FakeService()

        async def scenario(panel):
            doc = panel.document
            old_scope = panel.navigator.view_scope
            old_button = doc.by_id("analyzeBtn")
            old_input = doc.by_id("urlInput")
            doc.type_text(old_input, "https://example.com/")

            await panel.navigate(View.SETTINGS)
            clicked = await doc.dispatch(old_button, Event("click", old_button))
            pressed = await doc.press_key(old_input, "Enter")
            return clicked, pressed, doc.listeners.count(old_scope), old_scope.active

        with tempfile.TemporaryDirectory() as tmpdir:
            clicked, pressed, remaining, active = _run(tmpdir, service, scenario)

        assert (clicked, pressed, remaining, active) == (0, 0, 0, False)
        assert service.analyze_calls == []

    def test_list_rows_are_rebound_on_reload_of_the_list(self) -> None:
        service = FakeService()
        service.lists["whitelist"] = ["a.com", "b.com"]

        async def scenario(panel):
            doc = panel.document
            await panel.navigate(View.WHITELIST)
            old_remove = doc.select_one(".remove-btn")
            await panel.whitelist.load()
            stale = await doc.dispatch(old_remove, Event("click", old_remove))
            fresh = len(doc.select(".remove-btn"))
            return stale, fresh, doc.listeners.count(panel.navigator.view_scope)

        with tempfile.TemporaryDirectory() as tmpdir:
            stale, fresh, in_view = _run(tmpdir, service, scenario)

        assert stale == 0
        assert fresh == 2
        # back, add button, input keypress and one remove button per row
        assert in_view == 3 + fresh
        assert service.calls("DELETE", "/api/v1/whitelist/a.com") == []

    def test_superseded_navigation_mounts_last_view(self) -> None:
        service = FakeService()

        async def scenario(panel):
            await asyncio.gather(
                panel.navigate(View.HISTORY),
                panel.navigate(View.SETTINGS),
            )
            return snapshot(panel)

        with tempfile.TemporaryDirectory() as tmpdir:
            state = _run(tmpdir, service, scenario)

        assert state == (View.SETTINGS, ["settings"], False)


class TestFooterLinks:
    """Report and help open external pages."""

    def test_report_and_help(self) -> None:
        service = FakeService()
        opened = []

        async def scenario(panel):
            await panel.document.click("reportBtn")
            await panel.document.click("helpBtn")
            return panel.config.report_url, panel.config.help_url, snapshot(panel)

        with tempfile.TemporaryDirectory() as tmpdir:
            report_url, help_url, state = _run(tmpdir, service, scenario, opener=opened.append)

        assert opened == [report_url, help_url]
        assert state == (View.MAIN, ["main"], True)
