import os

from hathor.conf import UNITTESTS_SETTINGS_FILEPATH

# BlueprintTestCase reads the global settings on import of the runner
os.environ.setdefault("HATHOR_CONFIG_YAML", UNITTESTS_SETTINGS_FILEPATH)
