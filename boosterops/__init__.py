"""
boosterops - Release and maintenance automation for a fleet of boosters.

Boosters are small Maven projects that share a versioning scheme,
``<base>-<revision>[-<qualifier>][-SNAPSHOT]``. boosterops discovers them
with a GitHub search and applies one operation to every selected booster
and branch: releases with production tags, version bumps, branch
management, shell commands, tests and launcher catalog updates.

Quick Start:
    from boosterops.config import Settings, load_config
    from boosterops.services import BoosterOrchestrator, bind

    settings = Settings.from_config(load_config(), branches=['master'])
    results = BoosterOrchestrator(settings).run(bind('change_version'))
    for record in results.failed:
        print(record)

Domain Objects:
    Version - Parsed booster version
    Booster - Discovered booster repository
    RunResults - Processed, failed and ignored combinations of a run

Services:
    BoosterOrchestrator - The booster x branch loop
    ReleaseWorkflow - Release and production tag state machine
"""

__version__ = "0.1.0"
