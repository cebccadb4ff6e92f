"""Tests for placeholder rendering."""

from marketplace.notification.templates import render, render_email_html


class TestRender:
    def test_substitutes_known_placeholders(self):
        rendered = render(
            'Your project "{project_title}" moved from {old_status} to {new_status}.',
            {"project_title": "Site", "old_status": "draft", "new_status": "active"},
        )

        assert rendered == 'Your project "Site" moved from draft to active.'

    def test_missing_placeholder_stays_literal(self):
        rendered = render("Assigned to {freelancer_name}", {})

        assert rendered == "Assigned to {freelancer_name}"

    def test_none_value_stays_literal(self):
        rendered = render("Reason: {remark}", {"remark": None})

        assert rendered == "Reason: {remark}"

    def test_non_string_values_are_stringified(self):
        assert render("Amount: {amount}", {"amount": 12.5}) == "Amount: 12.5"

    def test_text_without_placeholders_is_unchanged(self):
        assert render("Plain text", {"unused": 1}) == "Plain text"


class TestRenderEmailHtml:
    def test_escapes_content(self):
        html = render_email_html("Title <b>", 'Message "quoted" & more')

        assert "&lt;b&gt;" in html
        assert "&amp; more" in html

    def test_includes_link_when_given(self):
        html = render_email_html("Title", "Body", link="/projects/p-1")

        assert 'href="/projects/p-1"' in html

    def test_omits_link_by_default(self):
        assert "href" not in render_email_html("Title", "Body")
