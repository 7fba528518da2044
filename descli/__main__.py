from descli.cli import main

raise SystemExit(main())
