from pathlib import Path

import anyio
import pytest

from diffscope.config import Config
from diffscope.diff import SelectionNotice
from diffscope.enums import DetectionErrorKind, DiffTarget, ProviderOrigin, RepositoryType
from diffscope.exceptions import BatchCancelledError, DetectionError, DiffRetrievalError, DiffscopeError
from diffscope.scm import FakeProvider, ProviderCapabilities, ScmProvider
from diffscope.session import Session
from tests.conftest import ManualClock, ScriptedRunner, Workspace, make_git_root

pytestmark = pytest.mark.anyio

NAME_ONLY = ("git", "diff", "--cached", "--name-only", "-z")


class RecordingNotifier:
    def __init__(self) -> None:
        self.notices: list[SelectionNotice] = []

    def notify(self, notice: SelectionNotice) -> None:
        self.notices.append(notice)


class FakeFactory:
    def __init__(self, *, supports_staging: bool = True, **kwargs: object) -> None:
        self.supports_staging: bool = supports_staging
        self.kwargs: dict[str, object] = kwargs
        self.built: dict[Path, FakeProvider] = {}

    def __call__(self, root: Path) -> ScmProvider | None:
        provider = FakeProvider(
            root=root,
            type=RepositoryType.GIT if self.supports_staging else RepositoryType.SVN,
            capabilities=ProviderCapabilities(
                origin=ProviderOrigin.PLUGIN, supports_staging=self.supports_staging
            ),
            diffs={DiffTarget.STAGED: "staged diff\n", DiffTarget.ALL: "all diff\n"},
            files={DiffTarget.STAGED: ["src/x.py"], DiffTarget.ALL: ["src/x.py", "README.md"]},
            **self.kwargs,  # pyright: ignore[reportArgumentType]
        )
        self.built[root] = provider
        return provider


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def factory() -> FakeFactory:
    return FakeFactory()


@pytest.fixture
def session(
    workspace: Workspace,
    runner: ScriptedRunner,
    clock: ManualClock,
    notifier: RecordingNotifier,
    factory: FakeFactory,
) -> Session:
    created = Session.create([workspace.root], runner=runner, clock=clock, notifier=notifier)
    created.resolver.register_plugin(RepositoryType.GIT, factory)
    created.resolver.register_plugin(RepositoryType.SVN, FakeFactory(supports_staging=False))
    return created


class TestCreate:
    def test_applies_config(self, workspace: Workspace) -> None:
        config = Config.from_dict(
            {"detection": {"fallback_to_all": False}, "cache": {"staged_ttl_ms": 1500}}
        )

        session = Session.create([workspace.root], config=config)

        assert session.config is config
        assert not session.selector.settings.fallback_to_all
        assert session.registry.workspace_roots == (workspace.root,)

    def test_defaults(self, workspace: Workspace) -> None:
        session = Session.create([workspace.root])

        assert session.config == Config.from_dict({})
        assert not session.closed


class TestResolveDiff:
    async def test_staged_changes_select_staged(
        self,
        session: Session,
        runner: ScriptedRunner,
        notifier: RecordingNotifier,
        workspace: Workspace,
    ) -> None:
        runner.on(*NAME_ONLY, stdout="src/x.py\0")

        resolution = await session.resolve_diff([workspace.a / "src" / "x.py"])

        assert resolution.context.repository.path == workspace.a
        assert resolution.detection.staged_files == (workspace.a / "src" / "x.py",)
        assert resolution.scm_type == "git"
        assert resolution.target is DiffTarget.STAGED
        assert resolution.diff is not None
        assert resolution.diff.content == "staged diff\n"
        assert resolution.diff.files == ("src/x.py",)
        assert notifier.notices[0].message == "Analyzing staged changes (1 files)"

    async def test_empty_staging_selects_all(
        self, session: Session, workspace: Workspace
    ) -> None:
        resolution = await session.resolve_diff(active_file=workspace.a / "src" / "x.py")

        assert resolution.target is DiffTarget.ALL
        assert resolution.diff is not None
        assert resolution.diff.content == "all diff\n"

    async def test_user_preference_overrides_detection(
        self, session: Session, runner: ScriptedRunner, workspace: Workspace
    ) -> None:
        runner.on(*NAME_ONLY, stdout="src/x.py\0")

        resolution = await session.resolve_diff(
            [workspace.a / "src" / "x.py"], user_preference=DiffTarget.ALL
        )

        assert resolution.target is DiffTarget.ALL

    async def test_provider_scope_is_restored(
        self, session: Session, factory: FakeFactory, workspace: Workspace, runner: ScriptedRunner
    ) -> None:
        runner.on(*NAME_ONLY, stdout="src/x.py\0")

        _ = await session.resolve_diff([workspace.a / "src" / "x.py"])

        provider = factory.built[workspace.a]
        assert provider.scopes_seen == [DiffTarget.STAGED]
        assert provider.diff_scope is DiffTarget.ALL

    async def test_repository_without_staging_skips_detection(
        self, session: Session, runner: ScriptedRunner, workspace: Workspace
    ) -> None:
        resolution = await session.resolve_diff([workspace.svn / "main.c"])

        assert resolution.scm_type == "svn"
        assert resolution.detection.recommended_target is DiffTarget.ALL
        assert not resolution.detection.failed
        assert resolution.target is DiffTarget.ALL
        assert NAME_ONLY not in runner.commands()

    async def test_failed_detection_falls_back_to_all(
        self, session: Session, runner: ScriptedRunner, workspace: Workspace
    ) -> None:
        runner.on("git", "rev-parse", "--git-dir", exit_code=128, stderr="fatal")

        resolution = await session.resolve_diff([workspace.b / "y.py"])

        assert resolution.detection.failed
        assert resolution.target is DiffTarget.ALL

    async def test_no_provider(
        self, workspace: Workspace, runner: ScriptedRunner, clock: ManualClock
    ) -> None:
        runner.on("git", "--version", exit_code=127)
        session = Session.create([workspace.root], runner=runner, clock=clock)

        resolution = await session.resolve_diff([workspace.a / "src" / "x.py"])

        assert resolution.scm_type == "none"
        assert resolution.target is None
        assert resolution.diff is None

    async def test_empty_workspace_raises(self, workspace: Workspace) -> None:
        session = Session.create([workspace.plain])

        with pytest.raises(DetectionError) as exc_info:
            _ = await session.resolve_diff()

        assert exc_info.value.kind is DetectionErrorKind.INVALID_REPOSITORY

    async def test_diff_failure_raises(
        self, workspace: Workspace, runner: ScriptedRunner, clock: ManualClock
    ) -> None:
        session = Session.create([workspace.root], runner=runner, clock=clock)
        session.resolver.register_plugin(RepositoryType.GIT, FakeFactory(fail_diff=True))

        with pytest.raises(DiffRetrievalError):
            _ = await session.resolve_diff([workspace.a / "src" / "x.py"])


class TestResolveBatch:
    async def test_one_resolution_per_repository(
        self, session: Session, workspace: Workspace
    ) -> None:
        report = await session.resolve_batch(
            [workspace.a / "src" / "x.py", workspace.b / "y.py", workspace.a / "z.py"]
        )

        assert report.complete
        assert [result.repository.path for result in report.results] == [workspace.a, workspace.b]
        assert all(result.value is not None for result in report.results)
        first = report.results[0].value
        assert first is not None
        assert first.context.selected_files == (workspace.a / "src" / "x.py", workspace.a / "z.py")

    async def test_repository_below_scan_depth_keeps_its_own_context(
        self, session: Session, factory: FakeFactory, workspace: Workspace
    ) -> None:
        deep = make_git_root(workspace.root / "group" / "deep").resolve()

        report = await session.resolve_batch([deep / "f.py"])

        assert [result.repository.path for result in report.results] == [deep]
        resolution = report.results[0].value
        assert resolution is not None
        assert resolution.context.repository.path == deep
        assert resolution.context.selected_files == (deep / "f.py",)
        assert deep in factory.built
        assert workspace.a not in factory.built

    async def test_cancelled_batch(self, session: Session, workspace: Workspace) -> None:
        cancel = anyio.Event()
        cancel.set()

        with pytest.raises(BatchCancelledError):
            _ = await session.resolve_batch([workspace.a / "src" / "x.py"], cancel=cancel)


class TestLifecycle:
    async def test_clear_drops_caches(
        self, session: Session, runner: ScriptedRunner, workspace: Workspace
    ) -> None:
        _ = await session.resolve_diff([workspace.a / "src" / "x.py"])
        generation = session.registry.generation

        session.clear()

        assert session.registry.generation == generation + 1
        assert session.resolver.cached_provider(workspace.a) is None
        calls = len(runner.calls)
        _ = await session.detector.detect_staged_content(workspace.a)
        assert len(runner.calls) > calls

    async def test_close_is_idempotent(self, session: Session) -> None:
        await session.close()
        await session.close()

        assert session.closed

    async def test_closed_session_rejects_work(self, session: Session) -> None:
        async with session:
            pass

        with pytest.raises(DiffscopeError, match="Session is closed"):
            _ = await session.resolve_diff()
