from sonic_lab.cli import main

raise SystemExit(main())
