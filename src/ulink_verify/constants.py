"""
ULink deep-link configuration keys, patterns and constants.

This module contains the file names, property-list keys, manifest names and
regex patterns used to locate and read deep-link configuration in customer
iOS, Android and Flutter projects.

Reference: https://docs.ulink.ly
"""
from __future__ import annotations

import re

# =============================================================================
# PROJECT LAYOUT
# =============================================================================
# Files whose presence at the project root classifies the project
FLUTTER_MANIFEST = "pubspec.yaml"
IOS_PLATFORM_DIR = "ios"
ANDROID_PLATFORM_DIR = "android"
IOS_BUNDLE_SUFFIXES = (".xcodeproj", ".xcworkspace")
ROOT_GRADLE_SCRIPTS = ("build.gradle", "build.gradle.kts")

# Directories never worth descending into when enumerating native projects
IGNORED_DIRS = {
    ".git",
    "DerivedData",
    "Pods",
    "node_modules",
    ".build",
    ".dart_tool",
}

# Build-output directories that hold generated (merged) manifests
MANIFEST_EXCLUDED_DIRS = {"build", ".gradle", "intermediates", "generated"}

# Fixed locations inside a Flutter project, in lookup order
FLUTTER_PATHS = {
    "info_plists": [
        ("ios", "Runner", "Info.plist"),
        ("ios", "Runner", "Runner-Info.plist"),
    ],
    "entitlements": [
        ("ios", "Runner", "Runner.entitlements"),
        ("ios", "Runner", "RunnerRelease.entitlements"),
        ("ios", "Runner", "RunnerDebug.entitlements"),
    ],
    "android_manifests": [
        ("android", "app", "src", "main", "AndroidManifest.xml"),
    ],
    "gradle_files": [
        ("android", "app", "build.gradle"),
        ("android", "app", "build.gradle.kts"),
        ("android", "build.gradle"),
        ("android", "build.gradle.kts"),
    ],
    "podfiles": [
        ("ios", "Podfile"),
    ],
    "podfile_locks": [
        ("ios", "Podfile.lock"),
    ],
    "package_swift": [
        ("ios", "Package.swift"),
    ],
    "pubspec": [
        ("pubspec.yaml",),
    ],
    "pubspec_locks": [
        ("pubspec.lock",),
    ],
}

# Conventional manifest locations for native Android projects, checked first
ANDROID_CONVENTIONAL_MANIFESTS = [
    ("app", "src", "main", "AndroidManifest.xml"),
    ("src", "main", "AndroidManifest.xml"),
    ("app", "AndroidManifest.xml"),
    ("AndroidManifest.xml",),
]

# File-name predicates for recursive enumeration in native projects
FILE_ROLE_SUFFIXES = {
    "info_plists": ("Info.plist",),
    "entitlements": (".entitlements",),
    "android_manifests": ("AndroidManifest.xml",),
    "gradle_files": ("build.gradle", "build.gradle.kts"),
    "podfiles": ("Podfile",),
    "podfile_locks": ("Podfile.lock",),
    "package_swift": ("Package.swift",),
    "pubspec": ("pubspec.yaml",),
    "pubspec_locks": ("pubspec.lock",),
}

# Roles that only make sense for one native platform
IOS_ROLES = {"info_plists", "entitlements", "podfiles", "podfile_locks", "package_swift"}
ANDROID_ROLES = {"android_manifests", "gradle_files"}

# =============================================================================
# PROPERTY LISTS (Info.plist / *.entitlements)
# =============================================================================
PLIST_BUNDLE_IDENTIFIER = "CFBundleIdentifier"
PLIST_URL_TYPES = "CFBundleURLTypes"
PLIST_URL_SCHEMES = "CFBundleURLSchemes"
ENTITLEMENT_ASSOCIATED_DOMAINS = "com.apple.developer.associated-domains"
APPLINKS_PREFIX = "applinks:"
SCHEME_SEPARATOR = "://"

# =============================================================================
# XCODE BUILD SETTINGS (project.pbxproj)
# =============================================================================
PBXPROJ_FILE = "project.pbxproj"
XCODEPROJ_SUFFIX = ".xcodeproj"
# Upward directory walk bound when looking for the .xcodeproj bundle
MAX_WALK_DEPTH = 5

# $(NAME) or ${NAME}, optionally with a modifier such as $(NAME:lower)
BUILD_VARIABLE_PATTERN = re.compile(r"\$[({]([A-Za-z_][A-Za-z0-9_]*)(?::[^)}]*)?[)}]")
TEAM_ID_PATTERN = re.compile(r"\bDEVELOPMENT_TEAM\s*=\s*\"?([A-Z0-9]{10})\"?\s*;")
TEST_CONFIGURATION_MARKER = "Test"

# =============================================================================
# ANDROID MANIFEST
# =============================================================================
ANDROID_NAMESPACE = "http://schemas.android.com/apk/res/android"
ANDROID_PREFIX = "android"
ACTION_VIEW = "android.intent.action.VIEW"
CATEGORY_BROWSABLE = "android.intent.category.BROWSABLE"
CATEGORY_DEFAULT = "android.intent.category.DEFAULT"
APP_LINK_SCHEME = "https"
UNBOUND_PREFIX_MARKER = "unbound prefix"

# =============================================================================
# GRADLE
# =============================================================================
# Ordered: modern namespace, applicationId, legacy android { package = ... }
GRADLE_PACKAGE_PATTERNS = [
    re.compile(r"""\bnamespace\s*[=:]?\s*["']([^"']+)["']"""),
    re.compile(r"""\bapplicationId\s*[=:]?\s*["']([^"']+)["']"""),
    re.compile(r"""(?s)\bandroid\s*\{[^}]*?\bpackage\s*[=:]\s*["']([^"']+)["']"""),
]
GRADLE_PROJECT_SCRIPTS = [
    ("build.gradle",),
    ("build.gradle.kts",),
    ("app", "build.gradle"),
    ("app", "build.gradle.kts"),
]
GRADLE_COMMENT_PREFIXES = ("//", "/*", "*")

# =============================================================================
# ULINK SDK COORDINATES
# =============================================================================
IOS_SDK_POD = "ULinkSDK"
IOS_SDK_PACKAGE_MARKERS = ("ULinkSDK", "ios_ulink_sdk", "ulink")
FLUTTER_SDK_PACKAGE = "flutter_ulink_sdk"

# Single-line coordinate form: implementation("ly.ulink:ulink-sdk:1.0.5")
GRADLE_COORDINATE_PATTERN = re.compile(
    r"""["']ly\.ulink:ulink-sdk(?::([^"'@]+))?(?:@[a-z]+)?["']"""
)
# JitPack form: implementation 'com.github.ulinkly:android-ulink-sdk:1.0.5'
GRADLE_JITPACK_PATTERN = re.compile(
    r"""["']com\.github\.[^:"']+:android-ulink-sdk(?::([^"'@]+))?["']"""
)
# Structured form: implementation group: 'ly.ulink', name: 'ulink-sdk', version: '1.0.5'
GRADLE_MAP_PATTERN = re.compile(
    r"""group\s*[:=]\s*["']ly\.ulink["']\s*,\s*name\s*[:=]\s*["']ulink-sdk["']"""
    r"""(?:\s*,\s*version\s*[:=]\s*["']([^"']+)["'])?"""
)

# pod 'ULinkSDK', '~> 1.0.0'
PODFILE_POD_PATTERN = re.compile(
    r"""^\s*pod\s+['"]ULinkSDK(?:/[A-Za-z0-9_]+)?['"](?:\s*,\s*['"]([^'"]+)['"])?"""
)
PODFILE_LOCK_PATTERN = re.compile(r"ULinkSDK(?:/[A-Za-z0-9_]+)? \(([^)]+)\)")

# .package(url: "https://github.com/ulinkly/ios_ulink_sdk", from: "1.0.0")
PACKAGE_SWIFT_URL_PATTERN = re.compile(r"""\.package\s*\(\s*(?:name:\s*"[^"]*"\s*,\s*)?url:\s*["']([^"']+)["']""")
PACKAGE_SWIFT_REQUIREMENT_PATTERNS = [
    ("from", re.compile(r"""from:\s*["']([^"']+)["']""")),
    ("exact", re.compile(r"""exact:\s*["']([^"']+)["']""")),
    ("branch", re.compile(r"""branch:\s*["']([^"']+)["']""")),
    ("revision", re.compile(r"""revision:\s*["']([^"']+)["']""")),
    ("range", re.compile(r"""["']([^"']+)["']\s*\.\.[.<]\s*["']([^"']+)["']""")),
]

# =============================================================================
# REMOTE CONFIGURATION
# =============================================================================
DOMAIN_STATUS_VERIFIED = "verified"
DOMAIN_STATUS_DEFAULT = "pending"

REMOTE_CONFIG_SCHEMA = {
    "type": "object",
    "required": ["projectId"],
    "properties": {
        "projectId": {"type": "string", "minLength": 1},
        "ios_bundle_identifier": {"type": ["string", "null"]},
        "ios_team_id": {"type": ["string", "null"]},
        "ios_deeplink_schema": {"type": ["string", "null"]},
        "android_package_name": {"type": ["string", "null"]},
        "android_deeplink_schema": {"type": ["string", "null"]},
        "android_sha256_fingerprints": {
            "type": ["array", "null"],
            "items": {"type": "string"},
        },
        "domains": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "required": ["id", "host"],
                "properties": {
                    "id": {"type": "string"},
                    "host": {"type": "string", "minLength": 1},
                    "status": {"type": ["string", "null"]},
                    "isPrimary": {"type": ["boolean", "null"]},
                },
            },
        },
    },
}

# =============================================================================
# PER-DIRECTORY PROJECT SELECTION
# =============================================================================
PROJECT_CONFIG_DIR = ".ulink"
PROJECT_CONFIG_FILE = "project.json"

# =============================================================================
# CHECK NAMES
# =============================================================================
CHECK_IOS_BUNDLE_ID_MATCH = "iOS Bundle Identifier Match"
CHECK_IOS_SCHEME_MATCH = "iOS URL Scheme Match"
CHECK_IOS_EXTRA_SCHEMES = "iOS Extra URL Schemes"
CHECK_IOS_DOMAIN_MATCH = "iOS Associated Domain Match"
CHECK_IOS_TEAM_ID = "iOS Team ID"
CHECK_IOS_TEAM_ID_MATCH = "iOS Team ID Match"

CHECK_ANDROID_PACKAGE_MATCH = "Android Package Name Match"
CHECK_ANDROID_SCHEME_MATCH = "Android URL Scheme Match"
CHECK_ANDROID_EXTRA_SCHEMES = "Android Extra URL Schemes"
CHECK_ANDROID_HOST_MATCH = "Android App Link Host Match"
CHECK_ANDROID_FINGERPRINTS = "Android SHA-256 Fingerprints"

CHECK_IOS_INFO_PLIST = "iOS Info.plist"
CHECK_IOS_URL_SCHEMES = "iOS URL Schemes"
CHECK_IOS_BUNDLE_ID = "iOS Bundle Identifier"
CHECK_IOS_ENTITLEMENTS = "iOS Entitlements"
CHECK_IOS_ASSOCIATED_DOMAINS = "iOS Associated Domains"

CHECK_ANDROID_MANIFEST = "Android AndroidManifest.xml"
CHECK_ANDROID_PACKAGE = "Android Package Name"
CHECK_ANDROID_URL_SCHEMES = "Android URL Schemes"
CHECK_ANDROID_APP_LINKS = "Android App Links"

CHECK_SDK_FLUTTER = "SDK Package - Flutter"
CHECK_SDK_ANDROID = "SDK Package - Android"
CHECK_SDK_IOS = "SDK Package - iOS"
CHECK_SDK_IOS_PODS = "SDK Package - iOS (CocoaPods)"
CHECK_SDK_IOS_SPM = "SDK Package - iOS (SPM)"

CHECK_PROJECT_DETECTION = "Project Detection"
CHECK_LOCAL_PARSING = "Local Configuration Parsing"
CHECK_REMOTE_CONFIG = "ULink Configuration"
CHECK_PROJECT_SELECTION = "ULink Project Selection"
