from overlaykit.schema.config import PopupConfig, RemoteConfig, build_defaults, merge_config
from overlaykit.schema.mutation import HtmlPatch, RemoteMutation

__all__ = (
    "PopupConfig",
    "RemoteConfig",
    "build_defaults",
    "merge_config",
    "HtmlPatch",
    "RemoteMutation",
)
