"""Account flows built on top of the models and utils packages."""
