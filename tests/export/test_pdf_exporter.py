"""
End-to-end tests: block tree in, PDF bytes out, read back with PyPDF2.
"""

import io
import json
import re
import threading
from unittest.mock import Mock

import pytest
from PyPDF2 import PdfReader

from notequill import export_document, render_to_pdf
from notequill.config import RenderOptions
from notequill.engine.assembler.document_assembler import DocumentAssembler, image_urls
from notequill.exceptions import CompilationError, ExportCancelledError
from notequill.export.pdf_exporter import ExportResult, PdfExporter, export_filename
from notequill.parser.block_parser import parse_blocks


def read_pdf(content):
    return PdfReader(io.BytesIO(content))


def page_texts(content):
    return [" ".join((page.extract_text() or "").split()) for page in read_pdf(content).pages]


def full_text(content):
    return " ".join(page_texts(content))


INTRO_TREE = [
    {"type": "heading1", "content": [{"text": "Intro"}]},
    {"type": "paragraph", "content": [{"text": "Hello ", "styles": ["bold"]}, {"text": "world"}]},
]


@pytest.mark.integration
class TestPdfExport:
    """Full export scenarios."""

    def test_intro_document(self, mock_session):
        content = render_to_pdf("Doc", INTRO_TREE, session=mock_session)

        assert content.startswith(b"%PDF")
        text = full_text(content)
        assert "Intro" in text
        assert "Hello world" in text
        mock_session.get.assert_not_called()

    def test_bold_run_uses_bold_font(self):
        options = RenderOptions(page_compression=False)
        content = render_to_pdf("Doc", json.dumps(INTRO_TREE), options=options)

        assert b"Helvetica-Bold" in content
        assert re.search(rb"\(Hello \) Tj", content)

    def test_contents_lists_headings_in_order(self):
        tree = [
            {"type": "heading1", "content": "First"},
            {"type": "paragraph", "content": "body"},
            {"type": "heading2", "content": "Second"},
            {"type": "heading3", "content": "Third"},
        ]
        content = render_to_pdf("Doc", tree)
        first_page = page_texts(content)[0]

        assert "Contents" in first_page
        positions = [first_page.index(name) for name in ("First", "Second", "Third")]
        assert positions == sorted(positions)
        # body starts on the page after the contents list
        assert "body" not in first_page

    def test_contents_entries_indented_by_level(self, monkeypatch):
        assembler = DocumentAssembler()
        canvas_links = []
        tree = parse_blocks([
            {"type": "heading1", "content": "A"},
            {"type": "heading2", "content": "B"},
            {"type": "heading3", "content": "C"},
        ])
        original = DocumentAssembler._draw_contents

        def spy(self, flow, renderer, headings):
            link_rect = flow.canvas.linkRect

            def record(contents, anchor, rect, **kwargs):
                canvas_links.append((anchor, rect[0]))
                return link_rect(contents, anchor, rect, **kwargs)

            flow.canvas.linkRect = record
            return original(self, flow, renderer, headings)

        monkeypatch.setattr(DocumentAssembler, "_draw_contents", spy)
        assembler.assemble("Doc", tree)

        assert [anchor for anchor, _x in canvas_links] == ["heading-1", "heading-2", "heading-3"]
        xs = [x for _anchor, x in canvas_links]
        assert xs[1] - xs[0] == pytest.approx(20)
        assert xs[2] - xs[1] == pytest.approx(20)

    def test_editor_heading_type_reaches_contents_and_outline(self):
        tree = [{"type": "heading", "props": {"level": 2}, "content": "Real heading"}]
        content = render_to_pdf("Doc", tree)

        assert "Contents" in page_texts(content)[0]
        outline = read_pdf(content).outline
        assert outline[1][0].title == "Real heading"

    def test_no_contents_page_without_headings(self):
        content = render_to_pdf("Doc", [{"type": "paragraph", "content": "only"}])
        assert len(read_pdf(content).pages) == 1
        assert "Contents" not in full_text(content)

    def test_footer_on_every_page(self):
        tree = [{"type": "paragraph", "content": f"Paragraph {i} " + "filler text " * 30} for i in range(80)]
        content = render_to_pdf("Doc", tree)
        texts = page_texts(content)

        assert len(texts) > 2
        for number, text in enumerate(texts, start=1):
            assert f"Doc · Page {number}" in text

    def test_outline_nested_under_title(self):
        tree = [
            {"type": "heading1", "content": "Top"},
            {"type": "heading2", "content": "Sub"},
        ]
        outline = read_pdf(render_to_pdf("Doc", tree)).outline

        assert outline[0].title == "Doc"
        children = outline[1]
        assert children[0].title == "Top"
        assert children[1][0].title == "Sub"

    def test_collapsed_toggle_children_absent(self):
        tree = [{"type": "toggleListItem", "props": {"open": False}, "content": "Toggle",
                 "children": [{"type": "paragraph", "content": "secret"}]}]
        text = full_text(render_to_pdf("Doc", tree))
        assert "Toggle" in text
        assert "secret" not in text

    def test_numbered_list_restarts(self):
        tree = (
            [{"type": "numberListItem", "content": f"alpha{i}"} for i in range(3)]
            + [{"type": "bulletListItem", "content": "middle"}]
            + [{"type": "numberListItem", "content": f"beta{i}"} for i in range(2)]
        )
        text = full_text(render_to_pdf("Doc", tree))
        assert "1. beta0" in text
        assert "2. beta1" in text

    def test_empty_table_placeholder(self):
        text = full_text(render_to_pdf("Doc", [{"type": "table", "children": [], "props": {"rows": []}}]))
        assert "[Table]" in text

    def test_image_404_keeps_caption(self, mock_session):
        tree = [{"type": "image", "props": {"url": "/files/chart.png", "caption": "Quarterly chart"}}]
        content = render_to_pdf("Doc", tree, origin="https://notes.test", cookie="sid=1", session=mock_session)

        assert "Quarterly chart" in full_text(content)
        assert mock_session.get.call_args.args[0] == "https://notes.test/files/chart.png"

    def test_image_embedded(self, mock_session, make_response, png_bytes):
        mock_session.get.return_value = make_response(200, png_bytes)
        tree = [{"type": "image", "props": {"url": "/files/a.png"}}]
        content = render_to_pdf("Doc", tree, origin="https://notes.test", session=mock_session,
                                options={"page_compression": False})
        assert b"/Subtype /Image" in content

    def test_prefetch_gives_same_document(self, mock_session, make_response, png_bytes):
        mock_session.get.return_value = make_response(200, png_bytes)
        tree = [{"type": "image", "props": {"url": f"/img/{i}.png"}} for i in range(3)]

        sequential = render_to_pdf("Doc", tree, "https://notes.test", session=mock_session)
        prefetched = render_to_pdf("Doc", tree, "https://notes.test", session=mock_session,
                                   options={"prefetch_workers": 3})
        assert len(read_pdf(sequential).pages) == len(read_pdf(prefetched).pages)

    def test_malformed_input_exports_title_only(self):
        content = render_to_pdf("Doc", "{not json")
        assert len(read_pdf(content).pages) == 1
        assert "Doc" in full_text(content)

    def test_cancelled_export_returns_nothing(self, mock_session):
        event = threading.Event()
        event.set()
        with pytest.raises(ExportCancelledError):
            render_to_pdf("Doc", INTRO_TREE, session=mock_session, cancel_event=event)

    def test_raising_image_loader_degrades_to_caption(self):
        loader = Mock(side_effect=RuntimeError("boom"))
        assembler = DocumentAssembler(image_loader=loader)
        blocks = parse_blocks([{"type": "image", "props": {"url": "/a.png", "caption": "cap"}}])
        content = assembler.assemble("Doc", blocks)

        assert "cap" in full_text(content)

    def test_malformed_urls_degrade(self, mock_session, make_response, png_bytes):
        mock_session.get.return_value = make_response(200, png_bytes)
        tree = [
            {"type": "image", "props": {"url": "http://[oops/x.png", "caption": "cap"}},
            {"type": "video", "props": {"url": "http://[oops/x.png"}},
            {"type": "image", "props": {"url": "/a.png", "previewWidth": -200}},
            {"type": "paragraph", "content": "after"},
        ]
        text = full_text(render_to_pdf("Doc", tree, origin="https://notes.test", session=mock_session))

        assert "cap" in text
        assert "[Video]" in text
        assert "after" in text

    def test_assembly_failure_is_compilation_error(self, monkeypatch):
        monkeypatch.setattr(
            "notequill.engine.assembler.document_assembler.attach_outline",
            Mock(side_effect=RuntimeError("boom")),
        )
        with pytest.raises(CompilationError):
            DocumentAssembler().assemble("Doc", parse_blocks(INTRO_TREE))

    def test_own_image_resolver_closed(self, monkeypatch):
        resolver_cls = Mock()
        monkeypatch.setattr("notequill.engine.assembler.document_assembler.ImageResolver", resolver_cls)

        DocumentAssembler().assemble("Doc", [])
        resolver_cls.return_value.close.assert_called_once()

    def test_own_image_resolver_closed_on_failure(self, monkeypatch):
        resolver_cls = Mock()
        monkeypatch.setattr("notequill.engine.assembler.document_assembler.ImageResolver", resolver_cls)
        monkeypatch.setattr(
            "notequill.engine.assembler.document_assembler.attach_outline",
            Mock(side_effect=RuntimeError("boom")),
        )

        with pytest.raises(CompilationError):
            DocumentAssembler().assemble("Doc", [])
        resolver_cls.return_value.close.assert_called_once()


class TestExportResult:
    """Filename, MIME type and exporter info."""

    def test_export_document(self):
        result = export_document("Meeting notes", INTRO_TREE)

        assert isinstance(result, ExportResult)
        assert result.mime_type == "application/pdf"
        assert result.filename == "Meeting notes.pdf"
        assert result.content_disposition == 'attachment; filename="Meeting notes.pdf"'

    @pytest.mark.parametrize("title, expected", [
        ("", "document.pdf"),
        (None, "document.pdf"),
        ('a/b\\c"d', "abcd.pdf"),
    ])
    def test_export_filename(self, title, expected):
        assert export_filename(title) == expected

    def test_exporter_info_and_file(self, temp_dir):
        exporter = PdfExporter("Doc", INTRO_TREE, export_options={"margin": 40})
        target = temp_dir / "out" / "doc.pdf"

        assert exporter.get_supported_formats() == ["pdf"]
        assert exporter.export_to_file(str(target)) is True
        assert target.read_bytes().startswith(b"%PDF")

        info = exporter.get_export_info()
        assert info["page_count"] == 2
        assert info["heading_count"] == 1
        assert exporter.options.margin == 40

    def test_unknown_option_rejected(self):
        with pytest.raises(ValueError):
            PdfExporter("Doc", [], export_options={"colour": "red"})


def test_image_urls_follow_render_order():
    blocks = parse_blocks([
        {"type": "image", "props": {"url": "/a.png"}},
        {"type": "toggleListItem", "children": [{"type": "image", "props": {"url": "/hidden.png"}}]},
        {"type": "paragraph", "children": [{"type": "image", "props": {"url": "/b.png"}}]},
    ])
    assert image_urls(blocks) == ["/a.png", "/b.png"]
