from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from diffscope.diff import LogNotifier, NoticeLevel, Notifier, SelectionNotice, build_notice
from diffscope.enums import DiffTarget
from diffscope.staged import StagedDetectionResult

ROOT = Path("/w/a")


def detection(count: int) -> StagedDetectionResult:
    return StagedDetectionResult(
        has_staged_content=count > 0,
        staged_file_count=count,
        staged_files=(),
        recommended_target=DiffTarget.STAGED if count else DiffTarget.ALL,
        repository_path=ROOT,
    )


class TestBuildNotice:
    @pytest.mark.parametrize(
        ("target", "count", "message", "level"),
        [
            (DiffTarget.STAGED, 2, "Analyzing staged changes (2 files)", NoticeLevel.INFO),
            (
                DiffTarget.STAGED,
                0,
                "Staging area is empty; analyzing staged changes anyway",
                NoticeLevel.WARNING,
            ),
            (
                DiffTarget.ALL,
                3,
                "Analyzing all working tree changes (including 3 staged files)",
                NoticeLevel.INFO,
            ),
            (
                DiffTarget.ALL,
                0,
                "Staging area is empty; analyzing all working tree changes",
                NoticeLevel.INFO,
            ),
        ],
    )
    def test_messages(
        self, target: DiffTarget, count: int, message: str, level: NoticeLevel
    ) -> None:
        notice = build_notice(target, detection(count), "Auto-detection")

        assert notice.target is target
        assert notice.message == message
        assert notice.level is level
        assert notice.reason == "Auto-detection"

    def test_str_includes_reason(self) -> None:
        notice = build_notice(DiffTarget.ALL, detection(0), "User preference")

        assert str(notice) == (
            "Staging area is empty; analyzing all working tree changes (User preference)"
        )


class TestLogNotifier:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(LogNotifier(), Notifier)

    def test_info_notice(self, mocker: MockerFixture) -> None:
        logger = mocker.MagicMock()
        notifier = LogNotifier(logger)
        notice = SelectionNotice(
            target=DiffTarget.STAGED,
            level=NoticeLevel.INFO,
            message="Analyzing staged changes (1 files)",
            reason="Auto-detection",
        )

        notifier.notify(notice)

        logger.bind.assert_called_once_with(component="notifier")
        logger.bind.return_value.info.assert_called_once_with(
            "Analyzing staged changes (1 files)", target="staged", reason="Auto-detection"
        )

    def test_warning_notice(self, mocker: MockerFixture) -> None:
        logger = mocker.MagicMock()
        notifier = LogNotifier(logger)

        notifier.notify(build_notice(DiffTarget.STAGED, detection(0), "User preference"))

        bound = logger.bind.return_value
        bound.warning.assert_called_once()
        bound.info.assert_not_called()
