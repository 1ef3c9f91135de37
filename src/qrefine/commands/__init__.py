"""CLI subcommands (loaded lazily by ``qrefine.cli``)."""
