"""Remotion CLI adapters with the subprocess layer mocked out."""

import json
import asyncio
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from tsxrender.collaborators import CompositionHandle, ResolutionOverrides
from tsxrender.collaborators.remotion import (
    RemotionBrowserProvisioner,
    RemotionBundler,
    RemotionCli,
    RemotionCompositionResolver,
    RemotionRenderer,
    partial_output_path,
)
from tsxrender.contracts import BundleError, CompositionNotFoundError, RenderError
from tests.helpers.fake_process import FakeProcess

pytestmark = pytest.mark.unit

CLI = ["npx", "--no-install", "remotion"]


@pytest.fixture
def cli():
    return RemotionCli(CLI, log_level="error")


@pytest.fixture
def staged_root(temp_dir):
    """Minimal staged project: package.json plus src/index.ts."""
    root = temp_dir / "stage"
    (root / "src").mkdir(parents=True)
    (root / "package.json").write_text("{}")
    (root / "src" / "index.ts").write_text("")
    return root


class TestRemotionCli:

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_lines_split_on_cr_and_lf(self, mock_exec, cli):
        mock_exec.return_value = FakeProcess("Bundling 10%\rBundling 55%\r\nDone ✓\n".encode(), chunk_size=3)
        seen = []

        result = await cli.run(["bundle"], on_line=seen.append)

        assert result.returncode == 0
        assert result.lines == ["Bundling 10%", "Bundling 55%", "Done ✓"]
        assert seen == result.lines
        args = mock_exec.call_args[0]
        assert list(args) == CLI + ["bundle"]

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_timeout_kills_process(self, mock_exec):
        process = FakeProcess(hang=True)
        mock_exec.return_value = process
        cli = RemotionCli(CLI, timeout=0.05)

        with pytest.raises(asyncio.TimeoutError):
            await cli.run(["render"])
        assert process.killed

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_cancellation_kills_process(self, mock_exec, cli):
        process = FakeProcess(hang=True)
        mock_exec.return_value = process

        task = asyncio.create_task(cli.run(["render"]))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert process.killed
        assert process.returncode == -9

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_failing_line_handler_kills_process(self, mock_exec, cli):
        process = FakeProcess(b"first\nsecond\n")
        mock_exec.return_value = process

        def on_line(line):
            raise ValueError(line)

        with pytest.raises(ValueError, match="first"):
            await cli.run(["render"], on_line=on_line)
        assert process.killed

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_finished_process_not_killed(self, mock_exec, cli):
        process = FakeProcess(b"done\n")
        mock_exec.return_value = process

        await cli.run(["render"])

        assert not process.killed

    def test_node_path_prepended(self, monkeypatch):
        monkeypatch.setenv("NODE_PATH", "/existing")
        cli = RemotionCli(CLI, node_path=["/a/node_modules", "/b/node_modules"])

        assert cli._env()["NODE_PATH"] == os.pathsep.join(["/a/node_modules", "/b/node_modules", "/existing"])

    def test_from_config_prefers_local_binary(self, make_config, temp_dir):
        local_bin = temp_dir / "node_modules" / ".bin" / "remotion"
        local_bin.parent.mkdir(parents=True)
        local_bin.write_text("#!/bin/sh\n")
        config = make_config(renderer_dir=str(temp_dir), timeout_sec=60)

        cli = RemotionCli.from_config(config)

        assert cli.command == [str(local_bin.resolve())]
        assert cli.cwd == str(temp_dir.resolve())
        assert cli.timeout == 60
        assert cli.node_path == [str(temp_dir.resolve() / "node_modules")]

    def test_from_config_defaults_to_npx(self, internal_config):
        cli = RemotionCli.from_config(internal_config)

        assert cli.command == CLI
        assert cli.cwd is None


class TestBundler:

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_bundle_success(self, mock_exec, cli, staged_root):
        mock_exec.return_value = FakeProcess(b"Bundling 10%\rBundling 60%\rBundling 100%\n")
        progress = []
        overrides = ResolutionOverrides.from_dirs(["/opt/renderer/node_modules"])

        location = await RemotionBundler(cli).bundle(
            staged_root / "src" / "index.ts", overrides,
            lambda fraction, sequence=None: progress.append(fraction),
        )

        assert location == str(staged_root / "build")
        assert progress == [0.1, 0.6, 1.0]
        args = mock_exec.call_args[0]
        assert args[3:5] == ("bundle", str(staged_root / "src" / "index.ts"))
        assert f"--out-dir={staged_root / 'build'}" in args
        assert mock_exec.call_args[1]["cwd"] == str(staged_root)

        config_ts = (staged_root / "remotion.config.ts").read_text()
        assert "overrideWebpackConfig" in config_ts
        assert json.dumps(list(overrides.module_dirs)) in config_ts

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_no_override_file_without_overrides(self, mock_exec, cli, staged_root):
        mock_exec.return_value = FakeProcess(b"")

        await RemotionBundler(cli).bundle(staged_root / "src" / "index.ts", ResolutionOverrides())

        assert not (staged_root / "remotion.config.ts").exists()

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_bundle_failure_keeps_output(self, mock_exec, cli, staged_root):
        mock_exec.return_value = FakeProcess(
            b"Module not found: Error: Can't resolve 'foo-bar' in '/stage/src'\n", returncode=1
        )

        with pytest.raises(BundleError, match="Can't resolve 'foo-bar'") as exc_info:
            await RemotionBundler(cli).bundle(staged_root / "src" / "index.ts", ResolutionOverrides())
        assert exc_info.value.phase == "bundling"

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec", side_effect=FileNotFoundError("npx"))
    async def test_missing_cli(self, mock_exec, cli, staged_root):
        with pytest.raises(BundleError, match="ENOENT"):
            await RemotionBundler(cli).bundle(staged_root / "src" / "index.ts", ResolutionOverrides())


class TestBrowserProvisioner:

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_download_progress(self, mock_exec, cli):
        mock_exec.return_value = FakeProcess(b"Downloading Chrome 12.5%\rDownloading Chrome 100%\n")
        progress = []

        await RemotionBrowserProvisioner(cli).ensure_available(
            lambda fraction, sequence=None: progress.append(fraction)
        )

        assert progress == [0.125, 1.0]
        assert mock_exec.call_args[0][3:5] == ("browser", "ensure")

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_failure_is_bundle_error(self, mock_exec, cli):
        mock_exec.return_value = FakeProcess(b"network unreachable\n", returncode=1)

        with pytest.raises(BundleError, match="network unreachable"):
            await RemotionBrowserProvisioner(cli).ensure_available()


class TestCompositionResolver:

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_select_existing(self, mock_exec, cli):
        mock_exec.return_value = FakeProcess(b"Intro X\n")

        handle = await RemotionCompositionResolver(cli).select_composition("/stage/build", "X")

        assert handle == CompositionHandle(id="X", bundle_location="/stage/build")

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_select_missing(self, mock_exec, cli):
        mock_exec.return_value = FakeProcess(b"Intro\nOutro\n")

        with pytest.raises(CompositionNotFoundError) as exc_info:
            await RemotionCompositionResolver(cli).select_composition("/stage/build", "X")
        assert exc_info.value.available == ["Intro", "Outro"]

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_listing_failure(self, mock_exec, cli):
        mock_exec.return_value = FakeProcess(b"Error: bundle broken\n", returncode=1)

        with pytest.raises(RenderError, match="bundle broken") as exc_info:
            await RemotionCompositionResolver(cli).select_composition("/stage/build", "X")
        assert exc_info.value.phase == "selecting"


def writing_exec(process, data=b"video"):
    """Subprocess stand-in that writes ``data`` to the render target, then returns ``process``."""
    async def fake_exec(*cmd, **kwargs):
        Path(cmd[len(CLI) + 3]).write_bytes(data)
        return process
    return fake_exec


class TestRenderer:

    def handle(self):
        return CompositionHandle(
            id="X", bundle_location="/stage/build",
            duration_in_frames=150, fps=30, width=1080, height=1920,
        )

    def test_build_args(self, cli):
        args = RemotionRenderer(cli).build_args(self.handle(), Path("/out/demo.mp4"), "h264")

        assert args[:4] == ["render", "/stage/build", "X", str(Path("/out/demo.mp4"))]
        assert "--codec=h264" in args
        assert "--width=1080" in args
        assert "--height=1920" in args
        assert "--frames=0-149" in args

    def test_build_args_without_overrides(self, cli):
        handle = CompositionHandle(id="X", bundle_location="/stage/build")
        args = RemotionRenderer(cli).build_args(handle, Path("/out/demo.mp4"), "vp9")

        assert not any(a.startswith(("--width", "--height", "--frames")) for a in args)

    def test_partial_path_is_sibling_with_same_suffix(self):
        partial = partial_output_path(Path("/out/demo.mp4"))

        assert partial.parent == Path("/out")
        assert partial.name.startswith("demo.partial-")
        assert partial.suffix == ".mp4"
        assert partial_output_path(Path("/out/demo.mp4")) != partial

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_progress_combines_render_and_encode(self, mock_exec, cli, temp_dir):
        mock_exec.side_effect = writing_exec(FakeProcess(
            b"Rendered 75/150\rRendered 150/150\nEncoded 75/150\rEncoded 150/150\n"
        ))
        progress = []

        await RemotionRenderer(cli).render_media(
            self.handle(), temp_dir / "demo.mp4", "h264",
            lambda fraction, sequence=None: progress.append(fraction),
        )

        assert progress == [0.25, 0.5, 0.75, 1.0, 1.0]

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_success_renames_partial_onto_output(self, mock_exec, cli, temp_dir):
        output = temp_dir / "demo.mp4"
        output.write_bytes(b"old")
        mock_exec.side_effect = writing_exec(FakeProcess(b"Rendered 150/150\n"), b"new video")

        await RemotionRenderer(cli).render_media(self.handle(), output, "h264")

        target = Path(mock_exec.call_args[0][len(CLI) + 3])
        assert target != output
        assert target.parent == output.parent
        assert output.read_bytes() == b"new video"
        assert list(temp_dir.iterdir()) == [output]

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_failed_render_leaves_no_output(self, mock_exec, cli, temp_dir):
        output = temp_dir / "demo.mp4"
        mock_exec.side_effect = writing_exec(
            FakeProcess(b"Error: encoder died\n", returncode=1), b"partial"
        )

        with pytest.raises(RenderError, match="encoder died"):
            await RemotionRenderer(cli).render_media(self.handle(), output, "h264")

        assert not output.exists()
        assert list(temp_dir.iterdir()) == []

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_failed_render_keeps_previous_output(self, mock_exec, cli, temp_dir):
        output = temp_dir / "demo.mp4"
        output.write_bytes(b"previous")
        mock_exec.side_effect = writing_exec(FakeProcess(returncode=1), b"partial")

        with pytest.raises(RenderError):
            await RemotionRenderer(cli).render_media(self.handle(), output, "h264")

        assert output.read_bytes() == b"previous"
        assert list(temp_dir.iterdir()) == [output]

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_clean_exit_without_file_is_error(self, mock_exec, cli, temp_dir):
        mock_exec.return_value = FakeProcess(b"")

        with pytest.raises(RenderError, match="wrote no file"):
            await RemotionRenderer(cli).render_media(self.handle(), temp_dir / "demo.mp4", "h264")

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_render_failure(self, mock_exec, cli, temp_dir):
        mock_exec.return_value = FakeProcess(b"Error: Chrome crashed\n", returncode=1)

        with pytest.raises(RenderError, match="Chrome crashed"):
            await RemotionRenderer(cli).render_media(self.handle(), temp_dir / "demo.mp4", "h264")

    @pytest.mark.asyncio
    @patch("asyncio.create_subprocess_exec")
    async def test_render_timeout(self, mock_exec, temp_dir):
        mock_exec.return_value = FakeProcess(hang=True)
        cli = RemotionCli(CLI, timeout=0.05)

        with pytest.raises(RenderError, match="timed out"):
            await RemotionRenderer(cli).render_media(self.handle(), temp_dir / "demo.mp4", "h264")
        assert not (temp_dir / "demo.mp4").exists()
