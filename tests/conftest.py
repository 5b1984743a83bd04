"""Shared builders for on-disk sample projects."""

import plistlib
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Optional

import pytest


APP_LINK_MANIFEST = """<?xml version="1.0" encoding="utf-8"?>
<manifest xmlns:android="http://schemas.android.com/apk/res/android"
    package="{package}">
    <application android:label="Sample">
        <activity android:name=".MainActivity" android:exported="true">
            <intent-filter>
                <action android:name="android.intent.action.MAIN" />
                <category android:name="android.intent.category.LAUNCHER" />
            </intent-filter>
            <intent-filter android:autoVerify="true">
                <action android:name="android.intent.action.VIEW" />
                <category android:name="android.intent.category.DEFAULT" />
                <category android:name="android.intent.category.BROWSABLE" />
                <data android:scheme="https" android:host="{host}" />
            </intent-filter>
            <intent-filter>
                <action android:name="android.intent.action.VIEW" />
                <category android:name="android.intent.category.DEFAULT" />
                <category android:name="android.intent.category.BROWSABLE" />
                <data android:scheme="{scheme}" />
            </intent-filter>
        </activity>
    </application>
</manifest>
"""

NAMESPACE_ONLY_MANIFEST = """<?xml version="1.0" encoding="utf-8"?>
<manifest xmlns:android="http://schemas.android.com/apk/res/android">
    <application>
        <activity android:name=".MainActivity">
            <intent-filter>
                <action android:name="android.intent.action.VIEW" />
                <category android:name="android.intent.category.BROWSABLE" />
                <data android:scheme="myapp" />
            </intent-filter>
        </activity>
    </application>
</manifest>
"""


def write_file(root: Path, relative: str, content) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


def plist_bytes(data: Dict) -> bytes:
    return plistlib.dumps(data)


def info_plist(bundle_id: Optional[str], schemes: Iterable[str] = ()) -> bytes:
    data: Dict = {"CFBundleName": "Sample"}
    if bundle_id is not None:
        data["CFBundleIdentifier"] = bundle_id
    schemes = list(schemes)
    if schemes:
        data["CFBundleURLTypes"] = [{"CFBundleURLSchemes": schemes}]
    return plist_bytes(data)


def entitlements_plist(domains: Iterable[str]) -> bytes:
    return plist_bytes(
        {"com.apple.developer.associated-domains": [f"applinks:{d}" for d in domains]}
    )


def pbxproj_text(settings: Dict[str, Iterable[str]]) -> str:
    lines = ["// !$*UTF8*$!", "{", "\tobjects = {"]
    for name, values in settings.items():
        for value in values:
            lines.append(f"\t\t\t\t{name} = {value};")
    lines.extend(["\t};", "}"])
    return "\n".join(lines) + "\n"


def build_ios_target(
    root: Path,
    target_dir: str,
    bundle_id: Optional[str],
    domains: Iterable[str] = (),
    schemes: Iterable[str] = (),
    entitlements_name: Optional[str] = None,
) -> Path:
    """Write ``<target_dir>/Info.plist`` and an entitlements file; return the latter."""
    name = entitlements_name or f"{Path(target_dir).name}.entitlements"
    write_file(root, f"{target_dir}/Info.plist", info_plist(bundle_id, schemes))
    return write_file(root, f"{target_dir}/{name}", entitlements_plist(domains))


def build_android_project(
    root: Path,
    package: str = "com.example.app",
    host: str = "example.com",
    scheme: str = "myapp",
    gradle: str = 'dependencies {\n    implementation("ly.ulink:ulink-sdk:1.0.5")\n}\n',
) -> Path:
    write_file(root, "build.gradle", "// root script\n")
    write_file(root, "app/build.gradle", gradle)
    return write_file(
        root,
        "app/src/main/AndroidManifest.xml",
        APP_LINK_MANIFEST.format(package=package, host=host, scheme=scheme),
    )


def build_flutter_project(
    root: Path,
    bundle_id: str = "com.example.app",
    package: str = "com.example.app",
    ios_schemes: Iterable[str] = ("myapp",),
    android_scheme: str = "myapp",
    domains: Iterable[str] = ("example.com",),
    host: str = "example.com",
) -> Path:
    write_file(
        root,
        "pubspec.yaml",
        "name: sample\ndependencies:\n  flutter:\n    sdk: flutter\n  flutter_ulink_sdk: ^0.1.0\n",
    )
    write_file(root, "pubspec.lock", "packages:\n  flutter_ulink_sdk:\n    version: \"0.1.0\"\n")
    write_file(root, "ios/Runner/Info.plist", info_plist(bundle_id, ios_schemes))
    write_file(root, "ios/Runner/Runner.entitlements", entitlements_plist(domains))
    write_file(
        root,
        "android/app/src/main/AndroidManifest.xml",
        APP_LINK_MANIFEST.format(package=package, host=host, scheme=android_scheme),
    )
    return root


def remote_payload(**overrides) -> Dict:
    payload = {
        "projectId": "proj_123",
        "ios_bundle_identifier": "com.example.app",
        "ios_team_id": None,
        "ios_deeplink_schema": "myapp://",
        "android_package_name": "com.example.app",
        "android_deeplink_schema": "myapp://",
        "android_sha256_fingerprints": [],
        "domains": [{"id": "d1", "host": "example.com", "status": "verified", "isPrimary": True}],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def tmp_project():
    tmp = Path(tempfile.mkdtemp())
    try:
        yield tmp
    finally:
        shutil.rmtree(tmp, ignore_errors=True)
