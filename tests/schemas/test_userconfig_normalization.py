"""UserConfig accepts UPPERCASE aliases and normalizes values."""

import pytest
from pydantic import ValidationError

from tsxrender.schemas import UserConfig

pytestmark = pytest.mark.unit


def test_uppercase_aliases():
    user = UserConfig.model_validate({
        "RENDERER_DIR": "~/tools/renderer",
        "NODE_MODULES_DIRS": ["/opt/node_modules"],
        "CODEC": "H264",
        "STAGING_DIR": "/tmp/stage",
        "CONFIG_EXPORT": "videoConfig",
    })

    assert user.renderer_dir == "~/tools/renderer"
    assert user.node_modules_dirs == ["/opt/node_modules"]
    assert user.codec == "h264"
    assert user.staging_dir == "/tmp/stage"
    assert user.config_export == "videoConfig"


def test_field_names_also_accepted():
    user = UserConfig(codec="vp9", overwrite=True)
    assert user.codec == "vp9"
    assert user.overwrite is True


def test_log_level_uppercased():
    assert UserConfig(LOG_LEVEL="debug").log_level == "DEBUG"


def test_command_string_split():
    user = UserConfig(REMOTION_COMMAND="node ./node_modules/.bin/remotion")
    assert user.remotion_command == ["node", "./node_modules/.bin/remotion"]


def test_unknown_key_rejected():
    with pytest.raises(ValidationError):
        UserConfig.model_validate({"RADAR_ID": "KDIX"})


def test_overrides_only_contain_set_values():
    overrides = UserConfig(codec="vp9", staging_dir="/tmp/s").to_internal_overrides()

    assert overrides == {
        "renderer": {"codec": "vp9"},
        "staging": {"parent_dir": "/tmp/s"},
    }


def test_empty_user_config_has_no_overrides():
    assert UserConfig().to_internal_overrides() == {}
