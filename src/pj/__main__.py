from pj.cli import main

raise SystemExit(main())
