"""The exec tester and helpers shared by testers."""