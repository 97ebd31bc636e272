DEFAULT_ARCHITECTURE = "x86_64"
ARM_ARCHITECTURE = "arm64"
ARM_KEY_SUFFIX = "-arm"
EXTENSION_KEY = "extension"
EXTENSION_ARM_KEY = f"{EXTENSION_KEY}{ARM_KEY_SUFFIX}"
GOVCLOUD_REGION_PREFIX = "us-gov-"
