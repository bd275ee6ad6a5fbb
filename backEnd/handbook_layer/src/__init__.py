"""
Handbook layer source modules.

Pipeline:
    parse_pdf.py    - PDF → page records
    snapshot.py     - Page records ⇄ `--- PAGE n ---` text files
    descriptors.py  - Faculty → handbook configuration
    store.py        - Snapshot-first loading with in-process cache
    relevance.py    - Keyword window extraction within a size budget
"""
