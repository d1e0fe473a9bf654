from .step_00_verify_privileges import VerifyPrivilegesStep
from .step_10_ensure_user import EnsureUserStep
from .step_15_sudo_access import GroupAccessStep, SudoAccessStep
from .step_20_refresh_index import RefreshIndexStep
from .step_30_install_packages import InstallPackagesStep
from .step_40_oh_my_zsh import OhMyZshStep, ZshPluginsStep
from .step_45_ranger_config import RangerConfigStep
from .step_50_golang import GoWorkspaceStep, InstallGoStep
from .step_55_sops import InstallSopsStep
from .step_60_docker import DockerAccessStep, DockerComposeStep, DockerServiceStep, InstallDockerStep
from .step_70_dotfiles import WriteDotfileStep, dotfile_steps
from .step_80_ownership import FixOwnershipStep
from .step_85_ssh_keys import InstallSSHKeysStep
from .step_90_default_shell import DefaultShellStep

__all__ = [
    "VerifyPrivilegesStep",
    "EnsureUserStep",
    "GroupAccessStep",
    "SudoAccessStep",
    "RefreshIndexStep",
    "InstallPackagesStep",
    "OhMyZshStep",
    "ZshPluginsStep",
    "RangerConfigStep",
    "InstallGoStep",
    "GoWorkspaceStep",
    "InstallSopsStep",
    "InstallDockerStep",
    "DockerComposeStep",
    "DockerAccessStep",
    "DockerServiceStep",
    "WriteDotfileStep",
    "dotfile_steps",
    "FixOwnershipStep",
    "InstallSSHKeysStep",
    "DefaultShellStep",
]
