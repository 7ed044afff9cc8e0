"""
tests/core/test_core_html.py - HTMLPage 테스트
"""

from unittest.mock import patch

from core.io.html import HTMLPage, open_in_browser


class TestHTMLPage:
    """HTMLPage 렌더링"""

    def test_chaining_and_chart_ids(self):
        page = HTMLPage("토폴로지").add_chart({"series": []}).add_chart({"series": []}, height=300)

        assert [c.chart_id for c in page.charts] == ["chart_1", "chart_2"]
        assert page.charts[1].height == 300

    def test_escapes_text(self):
        page = HTMLPage("<b>제목</b>", subtitle="a&b")
        page.add_notice("<script>x</script>")
        page.add_table("표", ["Name"], [["<i>"]])

        content = page.render()
        assert "&lt;b&gt;제목&lt;/b&gt;" in content
        assert "a&amp;b" in content
        assert "&lt;script&gt;x&lt;/script&gt;" in content
        assert "<td>&lt;i&gt;</td>" in content

    def test_chart_option_embedded(self):
        page = HTMLPage("t").add_chart({"title": {"text": "</script>"}}, script="chart.on('click', f);")

        content = page.render()
        assert "echarts.init(document.getElementById('chart_1'))" in content
        assert "<\\/script>" in content
        assert "chart.on('click', f);" in content

    def test_summary_cards(self):
        content = HTMLPage("t").add_summary([("리소스", 3, None), ("외부", 1, "warning")]).render()

        assert "리소스" in content
        assert "card warning" in content

    def test_save_without_open(self, tmp_path):
        with patch("core.io.html.open_in_browser") as open_mock:
            path = HTMLPage("t").save(tmp_path / "nested" / "page.html", auto_open=False)

        open_mock.assert_not_called()
        assert path.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")

    def test_save_with_open(self, tmp_path):
        with patch("core.io.html.open_in_browser") as open_mock:
            path = HTMLPage("t").save(tmp_path / "page.html")

        open_mock.assert_called_once_with(str(path))


class TestOpenInBrowser:
    def test_falls_back_to_webbrowser(self, tmp_path):
        target = tmp_path / "page.html"
        target.write_text("x", encoding="utf-8")

        with (
            patch("core.io.html.sys.platform", "linux"),
            patch("core.io.html.subprocess.run", side_effect=FileNotFoundError("xdg-open")),
            patch("core.io.html.webbrowser.open", return_value=True) as browser_open,
        ):
            assert open_in_browser(str(target)) is True

        browser_open.assert_called_once_with(target.resolve().as_uri())
