from blockparty.models import BlockMetadata
from blockparty.readme import extract_markdown_metadata, parse_frontmatter, parse_readme_metadata


def test_parse_frontmatter_strips_quotes():
    frontmatter, rest = parse_frontmatter('---\nname: "Hero"\ndescription: \'Big banner\'\nempty:\n---\n# Body\n')

    assert frontmatter == {"name": "Hero", "description": "Big banner", "empty": ""}
    assert rest == "# Body\n"


def test_parse_frontmatter_without_block():
    content = "# Just markdown\n"
    assert parse_frontmatter(content) == ({}, content)


def test_value_keeps_later_colons():
    frontmatter, _ = parse_frontmatter("---\ndescription: Time: 10:30\n---\n")
    assert frontmatter["description"] == "Time: 10:30"


def test_markdown_heading_and_paragraph():
    meta = extract_markdown_metadata("\n\n## Pricing Table\n\nCompare plans side by side.\nSecond line.\n")

    assert meta == BlockMetadata(name="Pricing Table", description="Compare plans side by side.")


def test_heading_followed_by_heading_has_no_description():
    meta = extract_markdown_metadata("# Title\n\n## Usage\n\nText")

    assert meta.name == "Title"
    assert meta.description is None


def test_no_heading():
    assert extract_markdown_metadata("plain text only") == BlockMetadata()


def test_missing_readme(tmp_path):
    assert parse_readme_metadata(str(tmp_path)) == BlockMetadata()


def test_frontmatter_wins_over_markdown(tmp_path):
    (tmp_path / "README.md").write_text(
        "---\nname: From Front Matter\n---\n# From Heading\n\nFrom paragraph.\n", encoding="utf-8"
    )

    meta = parse_readme_metadata(str(tmp_path))

    assert meta.name == "From Front Matter"
    assert meta.description == "From paragraph."


def test_markdown_only_readme(tmp_path):
    (tmp_path / "README.md").write_text("# Gallery\n\nA grid of images.\n", encoding="utf-8")

    assert parse_readme_metadata(str(tmp_path)) == BlockMetadata(name="Gallery", description="A grid of images.")
