#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Posts on disk: frontmatter, slugs, reading and listing.
"""


import datetime
import os
import re
import sys

from collections import namedtuple

import yaml


# Information and error messages:

def warnln(line):
    """ Write a warning 'line' to stderr. """
    print('learnarai: warning:', line, file = sys.stderr, flush = True)


# Errors:

class BlogError(Exception):
    """ Base class for all the errors raised while serving content. """
    pass


class InvalidSlug(BlogError):
    """ A slug that is not safe to map to a file path. """
    pass


class PostNotFound(BlogError):
    """ No post exists for a given slug. """
    pass


# Frontmatter:

DELIMITER = '---'

Frontmatter = namedtuple('Frontmatter', ['title', 'date'])
Frontmatter.__new__.__defaults__ = ('', '')

EMPTY_FRONTMATTER = Frontmatter()


class StringLoader(yaml.SafeLoader):
    """
    SafeLoader that leaves plain scalars as written,
    so "title: Yes" stays "Yes" and dates stay text.
    """
    yaml_implicit_resolvers = {}


def default_meta_renderer(meta):
    """
    Decode a metadata block as YAML, every scalar as a string.
    Returns a dict, raises ValueError when the block is not a mapping.
    """
    metadata = yaml.load(meta, Loader = StringLoader)

    # empty metadata:
    if metadata is None:
        return {}

    if not isinstance(metadata, dict):
        raise ValueError('Invalid metadata, not a dict: {}'.format(metadata))

    return metadata


def _meta_value(value):
    """ Plain string form of a metadata value, empty when missing. """
    if value is None:
        return ''
    return str(value)


def parse_frontmatter(raw, meta_renderer = default_meta_renderer):
    """
    Split 'raw' into (Frontmatter, body).

    Input without an opening delimiter, or with an opening one but no
    closing one, is returned unchanged with empty metadata. A metadata
    block that fails to decode yields empty metadata and a warning.
    """
    if not raw.startswith(DELIMITER):
        return EMPTY_FRONTMATTER, raw

    parts = raw[len(DELIMITER):].split(DELIMITER, 1)
    if len(parts) < 2:
        return EMPTY_FRONTMATTER, raw

    meta, body = parts

    try:
        metadata = meta_renderer(meta)
    except (yaml.YAMLError, ValueError) as err:
        warnln('failed to parse frontmatter: {}'.format(err))
        metadata = {}

    frontmatter = Frontmatter(
        title = _meta_value(metadata.get('title')),
        date  = _meta_value(metadata.get('date')))

    return frontmatter, body.strip()


# Slugs:

SLUG_RE = re.compile(r'[A-Za-z0-9_-]+')
LANGUAGE_PREFIXES = ('th-', 'en-')


def is_valid_slug(slug):
    """ True when 'slug' only contains ASCII letters, digits, '-' and '_'. """
    return SLUG_RE.fullmatch(slug) is not None


def slug_language(slug):
    """ Return the language a slug is tagged with, or None. """
    for prefix in LANGUAGE_PREFIXES:
        if slug.startswith(prefix):
            return prefix[:-1]
    return None


def humanize_slug(slug):
    """
    Derive a display title from a slug:
    'en-getting-started' -> 'Getting Started'.
    """
    if slug_language(slug) is not None:
        slug = slug[3:]

    words = slug.replace('-', ' ').split(' ')
    return ' '.join(word.capitalize() for word in words)


# Dates:

DATE_RE = re.compile(r'[0-9]{4}-[0-9]{2}-[0-9]{2}')


def parse_date(value):
    """
    Parse a strict 'YYYY-MM-DD' string as UTC midnight.
    Returns None when 'value' is empty or malformed.
    """
    if DATE_RE.fullmatch(value) is None:
        return None
    try:
        parsed = datetime.datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        return None
    return parsed.replace(tzinfo = datetime.timezone.utc)


def format_date(value):
    """ 'Jan 15, 2026' style, with no padding on the day. """
    return '{} {}, {}'.format(value.strftime('%b'), value.day, value.year)


# Reading:

class FileReader:
    """
    Reads posts from a flat directory of '<slug><extension>' files.
    Any object with the same read() contract can replace it.
    """
    def __init__(self, root, extension = '.md', encoding = 'utf-8-sig'):
        self.root = root
        self.extension = extension
        self.encoding = encoding

    def read(self, slug):
        """ Return the raw text for 'slug' or raise PostNotFound. """
        if not is_valid_slug(slug):
            raise InvalidSlug(slug)

        filepath = os.path.join(self.root, slug + self.extension)
        try:
            with open(filepath, 'r', encoding = self.encoding) as descriptor:
                return descriptor.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            raise PostNotFound(slug)

    def mtime(self, slug):
        """ Modification time of the file for 'slug', or None. """
        filepath = os.path.join(self.root, slug + self.extension)
        try:
            timestamp = os.stat(filepath).st_mtime
        except OSError:
            return None
        return datetime.datetime.fromtimestamp(timestamp).astimezone()


# Listing:

PostSummary = namedtuple('PostSummary', ['slug', 'title', 'date', 'date_display'])


def _newest_first(post):
    """ Sort key: undated posts compare as the oldest. """
    if post.date is None:
        return (0, 0.0)
    return (1, post.date.timestamp())


def summarize(slug, raw, mtime, meta_renderer = default_meta_renderer):
    """
    Build a PostSummary from raw post text.
    The frontmatter date wins over 'mtime' when it parses.
    """
    frontmatter, _ = parse_frontmatter(raw, meta_renderer)

    title = frontmatter.title or humanize_slug(slug)
    date = parse_date(frontmatter.date) or mtime
    date_display = format_date(date) if date is not None else ''

    return PostSummary(slug, title, date, date_display)


def build_index(reader, filenames, lang, meta_renderer = default_meta_renderer):
    """
    Summarize every post in 'filenames' visible under 'lang'.

    Posts tagged with another language are skipped, untagged ones are
    always included and unreadable ones are skipped with a warning.
    The result is sorted newest first, undated posts last, and
    by filename for equal dates.
    """
    posts = []

    for filename in sorted(filenames):
        if not filename.endswith(reader.extension):
            continue

        slug = filename[:-len(reader.extension)]

        language = slug_language(slug)
        if language is not None and language != lang:
            continue

        try:
            raw = reader.read(slug)
        except (BlogError, OSError, UnicodeDecodeError) as err:
            warnln('error reading post {}: {!r}'.format(filename, err))
            continue

        posts.append(summarize(slug, raw, reader.mtime(slug), meta_renderer))

    posts.sort(key = _newest_first, reverse = True)
    return posts


class Content:
    """ The posts directory as seen by the request handlers. """

    def __init__(self, reader, meta_renderer = default_meta_renderer):
        self.reader = reader
        self.meta_renderer = meta_renderer

    def list_posts(self, lang):
        """
        List the posts visible under 'lang'.
        Raises OSError when the posts directory can't be listed.
        """
        filenames = os.listdir(self.reader.root)
        return build_index(self.reader, filenames, lang, self.meta_renderer)

    def parse(self, raw):
        """ Split raw post text into (Frontmatter, body). """
        return parse_frontmatter(raw, self.meta_renderer)
