"""Bulk call-transcript harvester.

Walks a paginated call search, opens every result, extracts its
transcript from the rendered page, and writes one text file per call
plus a CSV index of the whole batch.

Key modules:
    controller  -- RunController: run lifecycle, page and item loops
    processor   -- ItemProcessor: per-item open/extract/persist/release
    navigator   -- PageNavigator: view opening, pagination, transcript panel
    strategies  -- ExtractionStrategy and GongStrategy (pure HTML parsing)
    surface     -- RenderingSurface contract and the Playwright adapter
    waits       -- required and best-effort wait primitives
    formatting  -- file names, date normalization, transcript documents
    storage     -- PersistenceSink/FolderSink and checkpoint stores
    progress    -- ProgressBroadcaster for PROGRESS_UPDATE pushes
    commands    -- CommandDispatcher for START/PAUSE/RESUME/STOP/GET_STATUS
    models      -- RunState, ItemRecord, TranscriptEntry and friends
    config      -- HarvestConfig timing constants and output locations
    errors      -- exception hierarchy
"""
