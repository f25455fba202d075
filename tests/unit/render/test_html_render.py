from datapivot.config.pivot import PivotConfig
from datapivot.io.readers import read_records
from datapivot.pivot.engine import build_pivot
from datapivot.render.common import format_value
from datapivot.render.html import render_html, render_page


def test_flat_pivot_markup(sales_records):
    config = PivotConfig(rows=["region"], columns=["prod"], value="qty")
    markup = render_html(build_pivot(sales_records, config))

    assert markup.startswith("<table class='pivot'><thead>")
    assert (
        "<tr><th scope='col' class='axis-label'>prod</th>"
        "<th scope='col'>A</th><th scope='col'>B</th></tr>"
    ) in markup
    assert "<th scope='col' class='value-label' colspan='2'>sum(qty)</th>" in markup
    assert "<tr><th scope='row'>E</th><td>10</td><td>5</td></tr>" in markup
    assert "<tr><th scope='row'>W</th><td>7</td><td>0</td></tr>" in markup
    assert "background-color" not in markup
    assert "Legend" not in markup


def test_nested_headers_use_spans(copy_example):
    project = copy_example("sales")
    records = read_records(project / "sales.csv")
    config = PivotConfig(rows=["region", "country"], columns=["quarter", "product"], value="qty")
    markup = render_html(build_pivot(records, config))

    assert "<th scope='col' class='axis-label' colspan='2'>quarter</th>" in markup
    assert "<th scope='col' colspan='3'>Q1</th>" in markup
    assert "<th scope='col' colspan='3'>Q2</th>" in markup
    assert "<th scope='row' rowspan='2'>East</th><th scope='row'>Germany</th>" in markup
    assert "<th scope='row' rowspan='2'>West</th><th scope='row'>France</th>" in markup
    assert "<tr><th scope='row'>Poland</th>" in markup


def test_heatmap_colors_and_legend(sales_records):
    config = PivotConfig(
        rows=["region"],
        columns=["prod"],
        value="qty",
        heatmap={"scope": "global", "show_legend": True, "legend_steps": 2},
    )
    markup = render_html(build_pivot(sales_records, config))

    assert "<td style='background-color: rgb(255,0,0);'>10</td>" in markup
    assert "<td style='background-color: rgb(255,255,255);'>5</td>" in markup
    assert "<div class='legend'><div>Legend:</div>" in markup
    assert "<div>5.00 - 7.50</div>" in markup
    assert "<div>7.50 - 10.00</div>" in markup


def test_labels_are_escaped():
    records = [{"who": "<b>Ann & co</b>", "what": "x'y", "n": 1}]
    config = PivotConfig(rows=["who"], columns=["what"], value="n")
    markup = render_html(build_pivot(records, config))
    assert "&lt;b&gt;Ann &amp; co&lt;/b&gt;" in markup
    assert "x&#x27;y" in markup
    assert "<b>" not in markup


def test_empty_result_renders_empty_body():
    config = PivotConfig(rows=["region"], columns=["prod"], value="qty", heatmap={"show_legend": True})
    markup = render_html(build_pivot([], config))
    assert "<tbody></tbody>" in markup
    assert "Legend" not in markup


def test_page_wraps_fragment(sales_records):
    config = PivotConfig(rows=["region"], columns=["prod"], value="qty")
    page = render_page(build_pivot(sales_records, config), title="Sales & Co")
    assert page.startswith("<html><head><meta charset='utf-8'>")
    assert "<title>Sales &amp; Co</title>" in page
    assert page.endswith("</table></body></html>")


def test_format_value():
    assert format_value(10) == "10"
    assert format_value(10.0) == "10"
    assert format_value(2.5) == "2.5"
    assert format_value(1 / 3) == "0.333333"
