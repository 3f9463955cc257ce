from bcasync.cli import main

raise SystemExit(main())
