"""
Postvault: Creator Feed Archiver

A utility for walking a creator's post feed on fanbox, downloading the media
each post references, and assembling every post into an offline HTML document
rendered to PDF for archival.
"""

__version__ = "1.0"
__author__ = "Postvault Project"
__description__ = "Creator Feed Archiver"
