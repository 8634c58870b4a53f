from diary_manager.main import main

raise SystemExit(main())
