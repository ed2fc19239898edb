"""
cordova-android: Android platform support for Cordova-style web app projects.

Creates, updates, prepares, builds and runs Android projects generated from an
HTML/JS/CSS application, and installs native plugin code into them.
"""

__version__ = "6.3.0"
__author__ = "cordova-android contributors"

PLATFORM = "android"
