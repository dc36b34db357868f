"""Shared fixtures for core unit tests"""

import pytest

from mdsafe.core.models import RenderOptions


SAMPLE_MD = """\
# Heading 1

A paragraph with **bold** text.

## Heading 2

- item one
- item two

```python
print("hello")
```

> quoted

---

Footer paragraph.
"""


@pytest.fixture(name="options")
def options_fixture():
    return RenderOptions()


@pytest.fixture(name="plain_options")
def plain_options_fixture():
    """Options with anchor target injection off, for compact expected HTML."""
    return RenderOptions(link_target_blank=False)


@pytest.fixture(name="sample_lines")
def sample_lines_fixture():
    return SAMPLE_MD.split("\n")
