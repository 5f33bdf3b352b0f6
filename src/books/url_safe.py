"""URL-safe conversion of book and page titles."""

import re


class URLSafeConverter:
    """Converts titles to lowercase ASCII slugs usable in URLs and directory names.

    Conversion rules:
    - Leading/trailing whitespace trimmed, text lowercased
    - Language names with symbols spelled out ("c++" → "cpp", "c#" → "csharp",
      ".net" → "dot-net")
    - Every run of characters other than ASCII letters and digits → one hyphen
    - Leading/trailing hyphens trimmed

    Examples:
        - "Essential Go" → "essential-go"
        - "C++" → "cpp"
        - ".NET Framework" → "dot-net-framework"
    """

    REPLACEMENTS = (
        ('c++', 'cpp'),
        ('c#', 'csharp'),
        ('.net', 'dot-net'),
    )

    NON_ALNUM_PATTERN = re.compile(r'[^a-z0-9]+')

    @classmethod
    def make_url_safe(cls, title: str) -> str:
        """Convert a title to a URL-safe slug.

        Examples:
            >>> URLSafeConverter.make_url_safe("Node.js")
            'node-js'
        """
        slug = title.strip().lower()
        for old, new in cls.REPLACEMENTS:
            slug = slug.replace(old, new)
        slug = cls.NON_ALNUM_PATTERN.sub('-', slug)
        return slug.strip('-')


def make_url_safe(title: str) -> str:
    return URLSafeConverter.make_url_safe(title)
