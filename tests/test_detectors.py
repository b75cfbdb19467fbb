"""Tests for the pattern catalog and detectors."""

import pytest


@pytest.fixture
def rules():
    from unslop.detectors.catalog import load_catalog

    return load_catalog()


class TestCatalog:
    """Tests for catalog loading."""

    def test_default_catalog_loads(self, rules):
        """Test that the bundled catalog parses and ids are unique."""
        ids = [rule.id for rule in rules]

        assert "vocab.utilize" in ids
        assert len(ids) == len(set(ids))

    def test_missing_field(self):
        """Test that an incomplete rule is rejected."""
        from unslop.detectors.catalog import CatalogError, parse_rule

        with pytest.raises(CatalogError, match="missing field"):
            parse_rule({"id": "x", "type": "filler_phrase"})

    def test_safe_rewrite_needs_replacement(self):
        """Test that safe rewrites cannot fall back to advice text."""
        from unslop.detectors.catalog import CatalogError, parse_rule

        with pytest.raises(CatalogError, match="needs a replacement"):
            parse_rule({"id": "x", "type": "ai_vocabulary_high", "pattern": "synergy"})

    def test_invalid_group(self):
        """Test that a rule cannot select a group its pattern lacks."""
        from unslop.detectors.catalog import CatalogError, parse_rule

        with pytest.raises(CatalogError):
            parse_rule({"id": "x", "type": "filler_phrase", "pattern": "basically", "group": 1})

    def test_extra_catalog_overrides_rule(self, tmp_path):
        """Test that a later catalog redefines a rule by id."""
        from unslop.detectors.catalog import load_catalog

        extra = tmp_path / "extra.yaml"
        extra.write_text(
            "rules:\n"
            "  - id: vocab.utilize\n"
            "    type: ai_vocabulary_high\n"
            '    pattern: "\\\\butilise\\\\b"\n'
            '    replacement: "use"\n'
        )

        rules = load_catalog([extra])
        utilize = [rule for rule in rules if rule.id == "vocab.utilize"]

        assert len(utilize) == 1
        assert utilize[0].regex.search("we utilise it")

    def test_unreadable_catalog(self, tmp_path):
        """Test that a missing catalog file is a CatalogError."""
        from unslop.detectors.catalog import CatalogError, load_catalog

        with pytest.raises(CatalogError):
            load_catalog([tmp_path / "missing.yaml"])

    def test_replacement_keeps_case(self, rules):
        """Test that rewrites keep a capitalized first letter."""
        rule = next(r for r in rules if r.id == "vocab.leverage")

        assert rule.suggestion_for(rule.regex.search("Leverage it")) == "Use"
        assert rule.suggestion_for(rule.regex.search("we leveraged it")) == "used"


class TestProseDetector:
    """Tests for ProseDetector."""

    def test_finds_slop_outside_fences(self, rules, sample_readme):
        """Test that fenced code is skipped and findings keep rule order per line."""
        from unslop.detectors.prose import ProseDetector
        from unslop.models.findings import FindingType

        findings = ProseDetector(rules).scan_text("README.md", sample_readme)

        assert [(f.location.line, f.type) for f in findings] == [
            (1, FindingType.EMOJI_HEADING),
            (3, FindingType.AI_VOCABULARY_HIGH),
            (3, FindingType.SYCOPHANTIC_OPENER),
            (10, FindingType.CHATBOT_CLOSER),
        ]
        delve = findings[1]
        assert delve.original_text == "delve into"
        assert delve.suggestion == "explore"
        assert delve.column == sample_readme.splitlines()[2].index("delve")

    def test_emoji_span_is_the_emoji(self, rules, sample_readme):
        """Test that only the emoji is flagged, not the heading."""
        from unslop.detectors.prose import ProseDetector

        finding = ProseDetector(rules).scan_text("README.md", sample_readme)[0]

        assert finding.original_text == "🚀 "
        assert finding.column == 2

    def test_category_filter(self, rules, sample_readme):
        """Test that a category filter narrows prose rules."""
        from unslop.detectors.prose import ProseDetector
        from unslop.models.findings import Category

        detector = ProseDetector(rules, categories={Category.VOCABULARY})
        findings = detector.scan_text("README.md", sample_readme)

        assert [f.original_text for f in findings] == ["delve into"]

    def test_code_rules_do_not_apply_to_headings(self, rules):
        """Test that a markdown heading is not read as a code comment."""
        from unslop.detectors.prose import ProseDetector

        findings = ProseDetector(rules).scan_text("a.md", "# Import data\n")

        assert findings == []

    @pytest.mark.asyncio
    async def test_scan_reads_files(self, rules, tmp_path, sample_readme):
        """Test scanning files relative to the root."""
        from unslop.detectors.prose import ProseDetector

        (tmp_path / "README.md").write_text(sample_readme)

        findings = await ProseDetector(rules, root=tmp_path).scan(["README.md"])

        assert len(findings) == 4
        assert all(f.location.path == "README.md" for f in findings)

    @pytest.mark.asyncio
    async def test_lone_carriage_return_keeps_line_numbers(self, rules, tmp_path):
        """Test that a bare CR is not read as a line break, matching how edits are planned."""
        from unslop.detectors.prose import ProseDetector
        from unslop.remediation.planner import locate_span, split_lines

        raw = b"Intro\rWe utilize it.\nEnd\n"
        (tmp_path / "notes.md").write_bytes(raw)

        findings = await ProseDetector(rules, root=tmp_path).scan(["notes.md"])

        assert [f.location.line for f in findings] == [1]
        assert locate_span(split_lines(raw.decode()), findings[0]) == findings[0].column


class TestCodeDetector:
    """Tests for CodeDetector."""

    def test_trailing_comment(self, rules, sample_python):
        """Test that a trailing tautological comment is found with its column."""
        from unslop.detectors.code import CodeDetector
        from unslop.models.findings import FindingType

        findings = CodeDetector(rules).scan_text("app.py", sample_python)

        assert len(findings) == 1
        finding = findings[0]
        assert finding.type == FindingType.TAUTOLOGICAL_ANNOTATION
        assert finding.location.line == 7
        assert finding.original_text == "# increment total"
        assert finding.column == sample_python.splitlines()[6].index("#")

    def test_only_comments_are_scanned(self, rules):
        """Test that code and string literals are ignored."""
        from unslop.detectors.code import CodeDetector

        text = 'result = utilize(x)\nlabel = "a # increment count"\n'

        assert CodeDetector(rules).scan_text("app.py", text) == []

    def test_fixed_categories_ignore_filter(self, rules):
        """Test that the code detector keeps its reduced set."""
        from unslop.detectors.code import CodeDetector
        from unslop.models.findings import Category

        detector = CodeDetector(rules, categories={Category.VOCABULARY})

        assert detector.categories == {Category.CODE_ANNOTATION, Category.VOCABULARY}
        assert all(
            rule.category in (Category.CODE_ANNOTATION, Category.VOCABULARY)
            for rule in detector.rules
        )

    def test_comment_start(self):
        """Test locating comments in a line."""
        from unslop.detectors.code import comment_start

        assert comment_start("# full line", ("#",)) == 0
        assert comment_start("    // indented", ("//",)) == 4
        assert comment_start("x = 1  # trailing", ("#",)) == 7
        assert comment_start("s = '# not a comment'", ("#",)) is None
        assert comment_start("", ("#",)) is None


class TestMetadataDetector:
    """Tests for MetadataDetector."""

    def test_findings_use_synthetic_locations(self, rules):
        """Test that commit messages are reported at line 0 without columns."""
        from unslop.detectors.metadata import MetadataDetector
        from unslop.models.findings import FindingType, Location

        texts = {"commit:0123456789ab": "Leverage the new cache\n\nI hope this helps!"}
        detector = MetadataDetector(rules, texts)

        findings = detector.scan_targets(list(texts))

        assert [f.type for f in findings] == [
            FindingType.AI_VOCABULARY_HIGH,
            FindingType.CHATBOT_CLOSER,
        ]
        assert all(f.location == Location("commit:0123456789ab", 0) for f in findings)
        assert all(f.column is None for f in findings)
        assert findings[0].suggestion == "Use"

    def test_missing_text(self, rules):
        """Test that an unknown artifact id is an error."""
        from unslop.detectors.metadata import MetadataDetector

        with pytest.raises(KeyError):
            MetadataDetector(rules, {}).scan_targets(["commit:0123456789ab"])
