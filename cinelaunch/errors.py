class CinelaunchError(Exception):
    """Base class for every failure the playback pipeline reports."""


class ConfigError(CinelaunchError):
    pass


class UpstreamUnavailable(CinelaunchError):
    """The metadata provider or the stream lookup service could not be reached."""


class MissingExternalId(CinelaunchError):
    """The title has no IMDb id, so no stream can be looked up for it."""


class NoResultsFound(CinelaunchError):
    pass


class NoSeasonsFound(CinelaunchError):
    pass


class NoEpisodesFound(CinelaunchError):
    pass


class NoStreamsAvailable(CinelaunchError):
    pass


class DownloadFailed(CinelaunchError):
    """A caption file could not be downloaded. Playback goes on without it."""


class UnsupportedPlatform(CinelaunchError):
    pass


class PlayerLaunchFailed(CinelaunchError):
    pass


class SelectionCancelled(CinelaunchError):
    """The user backed out of a prompt or left it empty."""
