"""Recognised configuration keys and file names."""
from __future__ import annotations

# deploy
AUTO_DEPLOY_DIR = "modlaunch.auto.deploy.dir"
AUTO_DEPLOY_ACTION = "modlaunch.auto.deploy.action"
AUTO_DEPLOY_TIER = "modlaunch.auto.deploy.tier"
AUTO_INSTALL_PREFIX = "modlaunch.auto.install"
AUTO_START_PREFIX = "modlaunch.auto.start"

# lifecycle
SHUTDOWN_HOOK = "modlaunch.shutdown.hook"
RUNTIME_STORAGE = "runtime.storage"
RUNTIME_FACTORY = "modlaunch.runtime.factory"

# logging
LOG_LEVEL = "modlaunch.log.level"
LOG_FORMAT = "modlaunch.log.format"

# properties file locations (looked up in process settings)
SYSTEM_PROPERTIES = "modlaunch.system.properties"
CONFIG_PROPERTIES = "modlaunch.config.properties"
SYSTEM_PROPERTIES_FILE = "system.properties"
CONFIG_PROPERTIES_FILE = "config.properties"
CONFIG_DIRECTORY = "conf"

# process settings copied into the configuration set
COPIED_SETTING_PREFIXES = ("modlaunch.", "runtime.")

# environment variables mapped onto dotted settings keys
ENV_PREFIXES = {"MODLAUNCH__": "modlaunch", "RUNTIME__": "runtime"}
