"""Test configuration for cordova-android."""

import pytest
import pytest_asyncio
from pathlib import Path
import tempfile

from cordova_android.core.logging import PlatformEvents
from cordova_android.models.build import CreateOptions
from cordova_android.models.project import AppProject, ProjectConfig
from cordova_android.services import scaffold


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests.

    Yields:
        Path: A Path object pointing to the temporary directory.
            The directory is automatically cleaned up after the test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class EventRecorder:
    """Listener collecting (event, message) pairs emitted by PlatformEvents."""

    def __init__(self):
        self.events = []

    def __call__(self, event, message):
        self.events.append((event, message))

    def messages(self, event):
        return [message for name, message in self.events if name == event]


@pytest.fixture
def recorder():
    """Create an event recorder."""
    return EventRecorder()


@pytest.fixture
def events(recorder):
    """Create a PlatformEvents sink forwarding to the recorder."""
    return PlatformEvents(listener=recorder)


@pytest.fixture
def project_config():
    """Create the configuration of a sample app.

    Returns:
        ProjectConfig: Package com.example.App named MyApp.
    """
    return ProjectConfig(package_name="com.example.App", name="MyApp")


SAMPLE_PLUGIN_XML = """<?xml version="1.0" encoding="UTF-8"?>
<plugin xmlns="http://apache.org/cordova/ns/plugins/1.0"
        xmlns:android="http://schemas.android.com/apk/res/android"
        id="cordova-plugin-sample" version="1.2.0">
    <name>Sample</name>
    <preference name="API_KEY" />
    <asset src="www/sample.js" target="js/sample.js" />
    <platform name="android">
        <config-file target="res/xml/config.xml" parent="/*">
            <feature name="Sample">
                <param name="android-package" value="org.sample.SamplePlugin" />
            </feature>
        </config-file>
        <config-file target="AndroidManifest.xml" parent="/manifest">
            <uses-permission android:name="$PACKAGE_NAME.permission.SAMPLE" />
        </config-file>
        <config-file target="AndroidManifest.xml" parent="/manifest/application">
            <meta-data android:name="sample.key" android:value="$API_KEY" />
        </config-file>
        <source-file src="src/android/SamplePlugin.java" target-dir="src/org/sample" />
        <resource-file src="res/sample.xml" target="res/xml/sample.xml" />
        <lib-file src="libs/sample.jar" />
        <framework src="lib/sample-lib" custom="true" />
        <framework src="com.android.support:support-v4:24.1.1+" />
    </platform>
</plugin>
"""

PLAIN_PLUGIN_XML = """<?xml version="1.0" encoding="UTF-8"?>
<plugin xmlns="http://apache.org/cordova/ns/plugins/1.0" id="cordova-plugin-plain" version="0.1.0">
    <name>Plain</name>
    <platform name="android">
        <source-file src="src/android/Plain.java" target-dir="src/org/plain" />
    </platform>
</plugin>
"""


def _write(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content)


@pytest.fixture
def sample_plugin_dir(temp_dir):
    """Create a plugin with sources, resources, a jar, frameworks, config munges and an asset.

    Returns:
        Path: Directory containing plugin.xml.
    """
    plugin_dir = temp_dir / "plugins" / "cordova-plugin-sample"
    _write(plugin_dir / "plugin.xml", SAMPLE_PLUGIN_XML)
    _write(plugin_dir / "src/android/SamplePlugin.java", "package org.sample;\nclass SamplePlugin {}\n")
    _write(plugin_dir / "res/sample.xml", "<resources/>\n")
    _write(plugin_dir / "libs/sample.jar", b"PK\x03\x04")
    _write(plugin_dir / "lib/sample-lib/build.gradle", "apply plugin: 'com.android.library'\n")
    _write(plugin_dir / "lib/sample-lib/src/main/AndroidManifest.xml", '<manifest package="org.sample.lib"/>\n')
    _write(plugin_dir / "www/sample.js", "module.exports = {};\n")
    return plugin_dir


@pytest.fixture
def plain_plugin_dir(temp_dir):
    """Create a plugin without any framework dependency.

    Returns:
        Path: Directory containing plugin.xml.
    """
    plugin_dir = temp_dir / "plugins" / "cordova-plugin-plain"
    _write(plugin_dir / "plugin.xml", PLAIN_PLUGIN_XML)
    _write(plugin_dir / "src/android/Plain.java", "package org.plain;\nclass Plain {}\n")
    return plugin_dir


def snapshot_files(root):
    """Relative paths of every file and symlink below a directory."""
    return sorted(
        str(p.relative_to(root)) for p in Path(root).rglob("*") if p.is_file() or p.is_symlink()
    )


@pytest.fixture
def snapshot():
    """Provide the file snapshot helper."""
    return snapshot_files


@pytest_asyncio.fixture
async def legacy_project(temp_dir, project_config, events):
    """Create a flat-layout project for com.example.App.

    Returns:
        Path: The project root.
    """
    return await scaffold.create(temp_dir / "MyApp", project_config, events=events)


@pytest_asyncio.fixture
async def studio_project(temp_dir, project_config, events):
    """Create a nested-layout project for com.example.App.

    Returns:
        Path: The project root.
    """
    return await scaffold.create(
        temp_dir / "MyApp", project_config, CreateOptions(android_studio=True), events
    )


APP_CONFIG_XML = """<?xml version='1.0' encoding='utf-8'?>
<widget id="com.example.App" version="1.2.3" xmlns="http://www.w3.org/ns/widgets">
    <name>It's Mine</name>
    <preference name="Orientation" value="Landscape" />
    <preference name="android-minSdkVersion" value="19" />
    <preference name="AndroidLaunchMode" value="singleTask" />
</widget>
"""


@pytest.fixture
def app_project(temp_dir):
    """Create an app with a www directory and a config.xml.

    Returns:
        AppProject: The app description.
    """
    root = temp_dir / "app"
    _write(root / "config.xml", APP_CONFIG_XML)
    _write(root / "www" / "index.html", "<html></html>\n")
    _write(root / "www" / "js" / "index.js", "console.log('ready');\n")
    return AppProject.from_root(root)
