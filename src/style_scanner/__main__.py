from style_scanner.cli import main

raise SystemExit(main())
