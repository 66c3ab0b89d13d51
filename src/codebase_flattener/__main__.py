from codebase_flattener.cli import main

raise SystemExit(main())
