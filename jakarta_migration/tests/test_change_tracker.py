"""
Tests for the Change Tracker
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from jakarta_migration.errors import ValidationError
from jakarta_migration.refactoring.change_tracker import ChangeTracker


@pytest.fixture
def tracker() -> ChangeTracker:
    return ChangeTracker()


class TestChangeTracker:
    """Tests for checkpoint storage."""
    
    def test_round_trip(self, tracker: ChangeTracker) -> None:
        checkpoint_id = tracker.create_checkpoint("src/A.java", "original", "before run")
        
        checkpoint = tracker.get_checkpoint(checkpoint_id)
        assert checkpoint.file_path == "src/A.java"
        assert checkpoint.description == "before run"
        assert tracker.get_original_content(checkpoint_id) == "original"
        assert tracker.has_checkpoint(checkpoint_id)
        assert tracker.checkpoint_count() == 1
    
    def test_ids_are_unique(self, tracker: ChangeTracker) -> None:
        first = tracker.create_checkpoint("src/A.java", "a", "")
        second = tracker.create_checkpoint("src/A.java", "a", "")
        
        assert first != second
        assert tracker.checkpoint_count() == 2
    
    def test_empty_content_is_kept(self, tracker: ChangeTracker) -> None:
        checkpoint_id = tracker.create_checkpoint("src/Empty.java", "", "empty file")
        
        assert tracker.get_original_content(checkpoint_id) == ""
    
    @pytest.mark.parametrize("checkpoint_id", [None, "", "   ", "does-not-exist"])
    def test_unknown_ids(self, tracker: ChangeTracker, checkpoint_id) -> None:
        """
        Test: Look up blank or unknown ids.
        
        Expected: None, never an exception.
        """
        assert tracker.get_checkpoint(checkpoint_id) is None
        assert tracker.get_original_content(checkpoint_id) is None
        assert not tracker.has_checkpoint(checkpoint_id)
    
    def test_remove_is_idempotent(self, tracker: ChangeTracker) -> None:
        checkpoint_id = tracker.create_checkpoint("src/A.java", "a", "x")
        
        tracker.remove_checkpoint(checkpoint_id)
        tracker.remove_checkpoint(checkpoint_id)
        tracker.remove_checkpoint(None)
        
        assert tracker.get_checkpoint(checkpoint_id) is None
        assert tracker.checkpoint_count() == 0
    
    @pytest.mark.parametrize("path,content,description", [
        ("", "a", "x"),
        ("  ", "a", "x"),
        (None, "a", "x"),
        ("src/A.java", None, "x"),
        ("src/A.java", "a", None),
    ])
    def test_invalid_input(self, tracker: ChangeTracker, path, content, description) -> None:
        with pytest.raises(ValidationError):
            tracker.create_checkpoint(path, content, description)
    
    def test_concurrent_checkpoints_across_files(self, tracker: ChangeTracker) -> None:
        """
        Test: Eight threads create, look up and remove checkpoints for forty files.
        
        Expected: Every lookup sees its own file's content, ids never collide
        and exactly the checkpoints that were not removed remain.
        """
        def work(index: int) -> tuple[int, str, bool]:
            checkpoint_id = tracker.create_checkpoint(f"src/File{index}.java", f"content {index}", "concurrent")
            matches = tracker.get_original_content(checkpoint_id) == f"content {index}"
            if index % 2:
                tracker.remove_checkpoint(checkpoint_id)
            return index, checkpoint_id, matches
        
        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(work, range(40)))
        
        assert all(matches for _, _, matches in results)
        assert len({checkpoint_id for _, checkpoint_id, _ in results}) == 40
        assert tracker.checkpoint_count() == 20
        for index, checkpoint_id, _ in results:
            kept = index % 2 == 0
            assert tracker.has_checkpoint(checkpoint_id) is kept
            if kept:
                assert tracker.get_checkpoint(checkpoint_id).file_path == f"src/File{index}.java"
                assert tracker.get_original_content(checkpoint_id) == f"content {index}"
