import os
import shutil
from pathlib import Path

import pytest
from git import Repo

# Environment variables read by PrefetchConfig.from_sources
PREFETCH_ENVIRONMENT = (
    "NIX_HASH_ALGO",
    "NIX_PREFETCH_GIT_DEEP_CLONE",
    "NIX_PREFETCH_GIT_LEAVE_DOT_GIT",
    "NIX_PREFETCH_GIT_BRANCH_NAME",
    "NIX_PREFETCH_GIT_CHECKOUT_HOOK",
    "NIX_GIT_SSL_CAINFO",
    "GIT_SSL_CAINFO",
    "PRINT_PATH",
    "QUIET",
    "http_proxy",
    "out",
)

IDENTITY = {
    "GIT_AUTHOR_NAME": "Test Author",
    "GIT_AUTHOR_EMAIL": "author@example.org",
    "GIT_COMMITTER_NAME": "Test Author",
    "GIT_COMMITTER_EMAIL": "author@example.org",
    "GIT_CONFIG_NOSYSTEM": "1",
    "GIT_CONFIG_GLOBAL": os.devnull,
}


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path_factory):
    """Keep the user's environment and config file out of every test."""
    for var in PREFETCH_ENVIRONMENT:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(
        "gitprefetch.config.config_dir", tmp_path_factory.mktemp("config")
    )


requires_git = pytest.mark.skipif(
    shutil.which("git") is None, reason="git binary not available"
)


class UpstreamRepo:
    """A local repository used as the remote in integration tests."""

    def __init__(self, path: Path):
        self.path = path
        path.mkdir(parents=True, exist_ok=True)
        self.repo = Repo.init(path)
        self.repo.git.update_environment(**IDENTITY)
        self.repo.git.symbolic_ref("HEAD", "refs/heads/master")
        self._tick = 0

    @property
    def url(self) -> str:
        return self.path.as_uri()

    def commit(self, filename: str, content: str, message: str = "") -> str:
        self._tick += 1
        # Fixed dates so that hashes are stable between runs
        date = f"2020-01-{self._tick:02d} 12:00:00 +0000"
        (self.path / filename).parent.mkdir(parents=True, exist_ok=True)
        (self.path / filename).write_text(content)
        self.repo.git.add(filename)
        self.repo.git.commit(
            "-m",
            message or f"update {filename}",
            env={"GIT_AUTHOR_DATE": date, "GIT_COMMITTER_DATE": date},
        )
        return self.head()

    def head(self) -> str:
        return self.repo.git.rev_parse("HEAD").strip()

    def tag(self, name: str, annotated: bool = False, target: str = "HEAD") -> None:
        if annotated:
            self.repo.git.tag(
                "-a",
                name,
                "-m",
                f"release {name}",
                target,
                env={"GIT_COMMITTER_DATE": "2020-02-01 12:00:00 +0000"},
            )
        else:
            self.repo.git.tag(name, target)

    def add_submodule(self, path: str, url: str, commit: str, name: str = "") -> str:
        """Register a gitlink without cloning the submodule."""
        name = name or path
        gitmodules = self.path / ".gitmodules"
        existing = gitmodules.read_text() if gitmodules.exists() else ""
        gitmodules.write_text(
            existing + f'[submodule "{name}"]\n\tpath = {path}\n\turl = {url}\n'
        )
        self.repo.git.update_index("--add", "--cacheinfo", f"160000,{commit},{path}")
        self.repo.git.add(".gitmodules")
        self._tick += 1
        date = f"2020-01-{self._tick:02d} 12:00:00 +0000"
        self.repo.git.commit(
            "-m",
            f"add submodule {name}",
            env={"GIT_AUTHOR_DATE": date, "GIT_COMMITTER_DATE": date},
        )
        return self.head()


@pytest.fixture
def make_upstream(tmp_path):
    def factory(name: str = "upstream") -> UpstreamRepo:
        return UpstreamRepo(tmp_path / "remotes" / name)

    return factory


@pytest.fixture
def upstream(make_upstream) -> UpstreamRepo:
    """
    History used by most integration tests:

        c1 (v0.1) -- c2 (v1.0, annotated) -- c3 (v2.0)   master
                      \\
                       c4 (experiment)                   feature
    """
    repo = make_upstream("repo")
    repo.c1 = repo.commit("README", "first\n")
    repo.tag("v0.1")
    repo.c2 = repo.commit("README", "second\n")
    repo.tag("v1.0", annotated=True)
    repo.repo.git.branch("feature")
    repo.c3 = repo.commit("src/main.txt", "third\n")
    repo.tag("v2.0")
    repo.repo.git.checkout("feature")
    repo.c4 = repo.commit("EXPERIMENT", "fourth\n")
    repo.tag("experiment")
    repo.repo.git.checkout("master")
    return repo
