"""Tests for writing Linear IDs back into story documents."""

from linearstories.content_parser import parse_markdown
from linearstories.content_writer import WriteBackUpdate, write_back_ids


URL = "https://linear.app/acme/issue/ENG-7"


class TestWriteBackIdentity:
    """Test documents are left alone when there is nothing to write."""

    def test_no_updates_returns_input(self, fixture_text):
        """Test an empty update list returns the document unchanged."""
        content = fixture_text("multi-story.md")

        assert write_back_ids(content, []) == content

    def test_unknown_title_changes_nothing(self, fixture_text):
        """Test an update for a missing title leaves every byte intact."""
        content = fixture_text("multi-story.md")

        updated = write_back_ids(content, [WriteBackUpdate("Not here", "ENG-7", URL)])

        assert updated == content


class TestWriteBackExistingBlock:
    """Test updates to stories that already have a metadata block."""

    def test_fills_empty_linear_id_in_place(self, fixture_text):
        """Test an empty linear_id line is replaced and other lines kept in order."""
        content = fixture_text("multi-story.md")

        updated = write_back_ids(content, [WriteBackUpdate("Add logout", "ENG-7", URL)])

        assert (
            "## Add logout\n\n```yaml\n"
            "# keep this comment\n"
            "priority: 3\n"
            "linear_id: ENG-7\n"
            f"linear_url: {URL}\n"
            "```\n"
        ) in updated

    def test_other_stories_untouched(self, fixture_text):
        """Test only the targeted story's lines change."""
        content = fixture_text("multi-story.md")

        updated = write_back_ids(content, [WriteBackUpdate("Add logout", "ENG-7", URL)])

        before = content.split("## Add logout")
        after = updated.split("## Add logout")
        assert after[0] == before[0]
        assert after[1].split("## Password reset")[1] == before[1].split("## Password reset")[1]

    def test_replaces_existing_values(self):
        """Test existing linear_id/linear_url lines are overwritten, not duplicated."""
        content = "## A\n\n```yaml\nlinear_id: OLD-1\nlinear_url: old\npriority: 2\n```\n"

        updated = write_back_ids(content, [WriteBackUpdate("A", "ENG-7", URL)])

        assert updated == f"## A\n\n```yaml\nlinear_id: ENG-7\nlinear_url: {URL}\npriority: 2\n```\n"

    def test_result_parses_with_new_ids(self, fixture_text):
        """Test the written document reads back with the assigned identifiers."""
        content = fixture_text("multi-story.md")

        updated = write_back_ids(content, [WriteBackUpdate("Add logout", "ENG-7", URL)])
        stories = parse_markdown(updated, "multi-story.md").stories

        assert stories[1].linear_id == "ENG-7"
        assert stories[1].linear_url == URL
        assert stories[1].priority == 3
        assert stories[0].linear_id == "ENG-101"


class TestWriteBackInsertBlock:
    """Test stories without a metadata block get one."""

    def test_block_inserted_after_heading(self, fixture_text):
        """Test a new yaml block is added directly below the heading."""
        content = fixture_text("multi-story.md")

        updated = write_back_ids(content, [WriteBackUpdate("Password reset", "ENG-8", URL)])

        assert (
            "## Password reset\n\n```yaml\n"
            "linear_id: ENG-8\n"
            f"linear_url: {URL}\n"
            "```\n\nReset my password by email."
        ) in updated

    def test_minimal_document(self):
        """Test insertion on a heading-only document."""
        updated = write_back_ids("## Just a title\n", [WriteBackUpdate("Just a title", "ENG-9", URL)])

        assert updated == f"## Just a title\n\n```yaml\nlinear_id: ENG-9\nlinear_url: {URL}\n```\n"


class TestWriteBackEdgeCases:
    """Test duplicates, line endings and multiple updates."""

    def test_duplicate_titles_first_story_only(self):
        """Test only the first story with a repeated title is updated."""
        content = "## Same\n\nOne\n\n## Same\n\nTwo\n"

        updated = write_back_ids(content, [WriteBackUpdate("Same", "ENG-1", URL)])

        assert updated.count("linear_id: ENG-1") == 1
        assert updated.endswith("## Same\n\nTwo\n")

    def test_repeated_update_first_wins(self):
        """Test a repeated title in the update list uses the first entry."""
        updated = write_back_ids(
            "## A\n",
            [WriteBackUpdate("A", "ENG-1", URL), WriteBackUpdate("A", "ENG-2", URL)],
        )

        assert "ENG-1" in updated
        assert "ENG-2" not in updated

    def test_crlf_preserved(self):
        """Test inserted and replaced lines follow the document's CRLF endings."""
        content = "## A\r\n\r\n```yaml\r\npriority: 1\r\n```\r\n\r\n## B\r\n\r\nText\r\n"

        updated = write_back_ids(
            content,
            [WriteBackUpdate("A", "ENG-1", URL), WriteBackUpdate("B", "ENG-2", URL)],
        )

        assert "\n" not in updated.replace("\r\n", "")
        assert f"priority: 1\r\nlinear_id: ENG-1\r\nlinear_url: {URL}\r\n```\r\n" in updated
        assert f"## B\r\n\r\n```yaml\r\nlinear_id: ENG-2\r\nlinear_url: {URL}\r\n```\r\n\r\nText\r\n" in updated

    def test_missing_trailing_newline_kept(self):
        """Test a document without a final newline does not gain one."""
        updated = write_back_ids("intro\n## A\nBody", [WriteBackUpdate("A", "ENG-1", URL)])

        assert updated.startswith("intro\n## A\n")
        assert updated.endswith("Body")


class TestWriteBackIsolation:
    """Test stories outside the update set are copied through."""

    def test_empty_linear_id_in_other_story_untouched(self):
        """Test B's empty linear_id line stays as it is when only A is updated."""
        story_b = "## B\n\n```yaml\nlinear_id:\nlinear_url:\n```\n\nBody of B\n"
        content = "## A\n\nBody of A\n\n" + story_b

        updated = write_back_ids(content, [WriteBackUpdate("A", "ENG-1", URL)])

        assert updated.endswith(story_b)
        assert updated.count("linear_id:\n") == 1

    def test_story_after_unclosed_fence_is_targeted(self):
        """Test write-back reaches a story that follows an unclosed fence."""
        content = "## A\n\n```yaml\npriority: 2\n\nBody A\n\n## B\n\nBody B\n\n## C\n\nBody C\n"

        updated = write_back_ids(content, [WriteBackUpdate("B", "ENG-2", URL)])

        assert f"## B\n\n```yaml\nlinear_id: ENG-2\nlinear_url: {URL}\n```\n\nBody B\n" in updated
        assert updated.startswith("## A\n\n```yaml\npriority: 2\n\nBody A\n\n## B")
        assert updated.endswith("## C\n\nBody C\n")
