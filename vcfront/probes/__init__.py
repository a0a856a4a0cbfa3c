"""Runtime probes."""

from vcfront.probes.files import (
    PermissionVerdict,
    current_identity,
    get_file_mtime,
    get_file_owner,
    probe_permissions,
)
from vcfront.probes.repo import find_repo_root, walk_files
from vcfront.probes.tools import SubprocessError, run_command
