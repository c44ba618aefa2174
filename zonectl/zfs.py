#!/usr/bin/env python3
"""
ZFS操作を管理するモジュール
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .errors import ZonectlError
from .privilege import PRIV_SYS_MOUNT, PprivBackend, PrivilegeBackend, with_privilege
from .process import ProcessRunner

MNTTAB = Path("/etc/mnttab")


class ZfsManager:
    """ZFSデータセットとスナップショットの操作"""

    def __init__(self, runner: ProcessRunner, privileges: Optional[PrivilegeBackend] = None):
        self.runner = runner
        self.privileges = privileges or PprivBackend(runner)

    def snapshot(
        self, op: str, ds: str, snap: str = "", args: Sequence[str] = ()
    ) -> Optional[List[str]]:
        """
        スナップショット操作

        Args:
            op: 'list' またはzfsサブコマンド（snapshot, destroy, rollback 等）
            ds: データセット名
            snap: スナップショット名（list以外で必須）
            args: 追加のzfs引数

        Returns:
            listの場合はスナップショット名のリスト（作成順）、それ以外はNone
        """
        if not ds:
            raise ZonectlError("dataset must not be empty.")

        if op == "list":
            return self.runner.read_proc(
                "zfs",
                ["list", "-H", "-t", "snapshot", "-d1", "-o", "name", "-s", "creation", *args, ds],
            )

        if not snap:
            raise ZonectlError("snapshot must not be empty.")

        with_privilege(
            self.privileges,
            PRIV_SYS_MOUNT,
            lambda: self.runner.run("zfs", [op, *args, f"{ds}@{snap}"]),
        )
        return None

    def get_prop(self, ds: str, props: Sequence[str]) -> Dict[str, Optional[str]]:
        """Values of the given properties, in order, keyed by name."""
        if not props:
            return {}

        values = self.runner.read_proc(
            "zfs", ["get", "-H", "-o", "value", ",".join(props), ds]
        )
        return {prop: values[i] if i < len(values) else None for i, prop in enumerate(props)}

    def _mount_map(self, mounted: bool = True) -> Dict[str, str]:
        """dataset -> mountpoint"""
        if mounted:
            try:
                lines = MNTTAB.read_text().splitlines()
            except OSError as e:
                raise ZonectlError(f"opening '{MNTTAB}' for reading: {e.strerror}") from e

            mounts = {}
            for line in lines:
                fields = line.split()
                if len(fields) >= 3 and fields[2] == "zfs":
                    mounts[fields[0]] = fields[1]
            return mounts

        mounts = {}
        for line in self.runner.read_proc("zfs", ["list", "-H", "-o", "name,mountpoint"]):
            name, _, mountpoint = line.partition("\t")
            mounts[name] = mountpoint
        return mounts

    def get_mnt_ds(self, path: str, mounted: bool = True) -> Optional[str]:
        """Dataset mounted at path (trailing slashes ignored)."""
        path = path.rstrip("/")
        for ds, mountpoint in self._mount_map(mounted).items():
            if mountpoint == path:
                return ds
        return None

    def get_ds_mnt(self, ds: str, mounted: bool = True) -> Optional[str]:
        return self._mount_map(mounted).get(ds)
