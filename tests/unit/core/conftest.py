"""Shared fixtures for core unit tests"""

import pytest

from tiplint.config import Settings
from tiplint.core.models import Document


TIP_MD = """\
---
title: "Tip of the Week #1: string_view"
layout: tips
sidenav: side-nav-tips.html
published: true
permalink: tips/1
type: markdown
order: "001"
---

Originally posted as TotW #1 on April 20, 2012

*Updated 2017-03-17*

A `string_view` is a read-only view into a string.

```c++
void TakesStringView(absl::string_view s);
```

<pre class="prettyprint lang-cpp code">
std::string s = "hello";
</pre>
"""

BLOG_MD = """\
---
title: "Random numbers"
layout: blog
sidenav: side-nav-blog.html
published: true
permalink: blog/20220608-random
type: markdown
category: design
excerpt_separator: <!--more-->
---

Teaser paragraph.

<!--more-->

Full article body.
"""


@pytest.fixture(name="tip_md")
def tip_md_fixture():
    return TIP_MD


@pytest.fixture(name="blog_md")
def blog_md_fixture():
    return BLOG_MD


@pytest.fixture(name="settings")
def settings_fixture():
    return Settings()


@pytest.fixture(name="make_doc")
def make_doc_fixture():
    """Factory for a valid tip Document; keyword arguments override fields."""
    def _make(**overrides) -> Document:
        fields = dict(
            path="tips/001.md",
            hash="0" * 64,
            title="Tip #1",
            layout="tips",
            permalink="tips/1",
            order="1",
            frontmatter={"title": "Tip #1", "layout": "tips", "permalink": "tips/1", "order": "1"},
        )
        fields.update(overrides)
        return Document(**fields)
    return _make


@pytest.fixture(name="corpus")
def corpus_fixture(tmp_path):
    """A small valid corpus: one tip and one blog post."""
    (tmp_path / "tips").mkdir()
    (tmp_path / "blog").mkdir()
    (tmp_path / "tips" / "001.md").write_text(TIP_MD)
    (tmp_path / "blog" / "random.md").write_text(BLOG_MD)
    return tmp_path
