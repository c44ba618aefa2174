#!/usr/bin/env python3
"""
外部コマンド実行を管理するモジュール

Commands are registered once per process with a fixed path. Extra arguments
for a command can be injected through ``__ZONECTL_<NAME>_ARGS``.
"""

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import ConfigurationError, ProcessError
from .utils import ENV_PREFIX

logger = logging.getLogger(__name__)


# Static command paths. editor/pager are resolved from the environment.
COMMAND_PATHS: Dict[str, str] = {
    "zoneadm": "/usr/sbin/zoneadm",
    "zonecfg": "/usr/sbin/zonecfg",
    "zlogin": "/usr/sbin/zlogin",
    "zonename": "/usr/bin/zonename",
    "bhyvectl": "/usr/sbin/bhyvectl",
    "dladm": "/usr/sbin/dladm",
    "pptadm": "/usr/sbin/pptadm",
    "zfs": "/usr/sbin/zfs",
    "pkg": "/usr/bin/pkg",
    "nc": "/usr/bin/nc",
    "domainname": "/usr/bin/domainname",
    "dispadmin": "/usr/sbin/dispadmin",
    "getconf": "/usr/bin/getconf",
    "pagesize": "/usr/bin/pagesize",
    "swap": "/usr/sbin/swap",
    "ipf": "/usr/sbin/ipf",
    "ipfstat": "/usr/sbin/ipfstat",
    "ipmon": "/usr/sbin/ipmon",
    "ipnat": "/usr/sbin/ipnat",
    "file": "/usr/bin/file",
    "dd": "/usr/bin/dd",
    "ppriv": "/usr/bin/ppriv",
    "uefivars": "/opt/ooce/bin/uefivars",
    "bhyve_boot": "/usr/lib/brand/bhyve/boot",
}

DEFAULT_EDITOR = "/usr/bin/vi"
DEFAULT_PAGER = "/usr/bin/less -eimnqX"


@dataclass(frozen=True)
class Command:
    """外部コマンドの定義"""

    name: str
    argv: Tuple[str, ...]
    extra_args: Tuple[str, ...] = ()

    @property
    def description(self) -> str:
        return f"executing '{self.name}'"

    def build(self, args: Sequence[str] = ()) -> List[str]:
        """設定済みパス + 環境変数の追加引数 + 呼び出し側の引数"""
        return [*self.argv, *self.extra_args, *args]


def env_args_var(name: str) -> str:
    return f"{ENV_PREFIX}_{name.upper()}_ARGS"


def build_command_table(env: Optional[Mapping[str, str]] = None) -> Dict[str, Command]:
    """
    コマンドテーブルを構築

    Args:
        env: 環境変数（未指定時はos.environ）

    Returns:
        コマンド名 -> Command の辞書
    """
    env = os.environ if env is None else env

    paths = dict(COMMAND_PATHS)
    paths["editor"] = env.get("VISUAL") or env.get("EDITOR") or DEFAULT_EDITOR
    paths["pager"] = env.get("PAGER") or DEFAULT_PAGER

    return {
        name: Command(
            name=name,
            argv=tuple(shlex.split(path)),
            extra_args=tuple(shlex.split(env.get(env_args_var(name), ""))),
        )
        for name, path in paths.items()
    }


class ProcessRunner:
    """外部コマンドの実行を管理するクラス"""

    def __init__(self, commands: Mapping[str, Command]):
        self.commands = dict(commands)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ProcessRunner":
        return cls(build_command_table(env))

    def get_command(self, name: str) -> Command:
        if name not in self.commands:
            raise ConfigurationError(f"command '{name}' not defined.")
        return self.commands[name]

    def argv(self, name: str, args: Sequence[str] = ()) -> List[str]:
        argv = self.get_command(name).build(args)
        logger.debug(shlex.join(argv))
        return argv

    def read_proc(self, name: str, args: Sequence[str] = ()) -> List[str]:
        """
        コマンドを実行して標準出力を行単位で取得

        stderrは破棄する。起動失敗（OSError）はそのまま送出する。

        Returns:
            改行を除いた出力行のリスト
        """
        argv = self.argv(name, args)

        # バイト列で読む: 改行は\nのみで区切り、非UTF-8の出力も失わない
        with subprocess.Popen(
            argv, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL
        ) as proc:
            lines = [
                line.rstrip(b"\r\n").decode("utf-8", errors="surrogateescape")
                for line in proc.stdout
            ]
            proc.wait()

        return lines

    def run(
        self,
        name: str,
        args: Sequence[str] = (),
        error: Optional[str] = None,
        tolerate: Optional[int] = None,
    ) -> int:
        """
        コマンドを子プロセスとして実行し、終了を待つ

        Args:
            name: コマンド名
            args: 追加引数
            error: エラーメッセージの文脈
            tolerate: エラーとしない終了コード

        Returns:
            終了コード

        Raises:
            ProcessError: 起動失敗、または許容されない終了コード
        """
        command = self.get_command(name)
        error = error or command.description
        argv = self.argv(name, args)

        try:
            returncode = subprocess.call(argv)
        except OSError as e:
            raise ProcessError(f"{error}: {e.strerror or e}") from e

        if returncode != 0 and returncode != tolerate:
            raise ProcessError(
                f"{error}: exited with status {returncode}", returncode=returncode
            )

        return returncode

    def exec_replace(
        self, name: str, args: Sequence[str] = (), error: Optional[str] = None
    ) -> None:
        """Replace the current process image. Only returns by raising."""
        error = error or self.get_command(name).description
        argv = self.argv(name, args)

        try:
            os.execvp(argv[0], argv)
        except OSError as e:
            raise ProcessError(f"{error}: {e.strerror or e}") from e

    def spawn_detached(
        self, name: str, args: Sequence[str] = (), error: Optional[str] = None
    ) -> int:
        """
        forkして子プロセスでexecする。親プロセスは待たずに子のPIDを返す。
        """
        error = error or self.get_command(name).description
        argv = self.argv(name, args)

        pid = os.fork()
        if pid == 0:
            try:
                os.execvp(argv[0], argv)
            except OSError as e:
                os.write(2, f"ERROR: {error}: {e.strerror or e}\n".encode())
            os._exit(127)

        return pid
