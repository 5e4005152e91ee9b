import re
from urllib.parse import urldefrag

from ..paths import clean_url

REWRITE_PATTERNS = [
    (
        re.compile(r"""(url\(['"]{0,1}\s*(.*?)["']{0,1}\))""", re.IGNORECASE),
        """url("{}")""",
    ),
    (
        re.compile(r"""(@import\s*["']\s*(.*?)["'])""", re.IGNORECASE),
        """@import url("{}")""",
    ),
]


def process(text, input, packer, context):
    # Every reference is relocated relative to where the bundle is served from (or
    # routed through wroResources), since the bundle doesn't live next to its inputs.
    rewriter = packer.rewriter

    def converter(template):
        def _convert(match):
            matched, url = match.groups()
            url = clean_url(url)

            # Ignore empty, fragment-only, data-uri and absolute/protocol-relative URLs.
            if (
                not url
                or url.startswith(("#", "//"))
                or re.match(r"^[a-z]+:", url, re.IGNORECASE)
            ):
                return matched

            # Strip off the fragment so it doesn't end up in a resource id.
            url_path, fragment = urldefrag(url)
            transformed_url = rewriter.rewrite(
                input.name, url_path.rstrip("?"), context
            )
            if fragment:
                transformed_url += ("?#" if "?#" in url else "#") + fragment

            return template.format(transformed_url)

        return _convert

    for pattern, template in REWRITE_PATTERNS:
        text = pattern.sub(converter(template), text)
    rewriter.process_completed(input.name)
    return text
