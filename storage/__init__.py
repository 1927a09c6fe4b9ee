"""Flat-file storage and store bootstrap for the bot.

Import submodules directly (storage.files, storage.bootstrap): bootstrap
depends on the repositories, which depend on storage.files.
"""
