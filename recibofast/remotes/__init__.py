from recibofast.remotes.base import RemoteSource  # noqa: F401
from recibofast.remotes.primary import PrimaryReceiptsApi  # noqa: F401
from recibofast.remotes.secondary import SecondaryReceiptsStore  # noqa: F401
